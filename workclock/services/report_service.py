"""
Working Time Report Generator
Summarizes projected daily records and renders them as text or CSV.
"""
import csv
import datetime
import io
import logging
import os
from typing import Dict, List, Optional

from .pair_projector import DailyRecord, format_duration

logger = logging.getLogger(__name__)


def _format_time(value: Optional[datetime.datetime], tz: Optional[datetime.tzinfo]) -> str:
    if value is None:
        return "--:--:--"
    return value.astimezone(tz).strftime('%H:%M:%S')


class WorkingTimeReport:
    """Working time report over a list of daily records"""

    def __init__(self, records: List[DailyRecord], title: str = "Working Time Report",
                 tz: Optional[datetime.tzinfo] = None):
        """
        Args:
            records: Daily records as returned by `pair_projector.project`
            title: Heading used in text and CSV output
            tz: Timezone used to display clock times
        """
        self.records = sorted(records, key=lambda r: r.date)
        self.title = title
        self.tz = tz

    @property
    def start_date(self) -> Optional[datetime.date]:
        return self.records[0].date if self.records else None

    @property
    def end_date(self) -> Optional[datetime.date]:
        return self.records[-1].date if self.records else None

    def summary(self) -> Dict:
        """
        Summary statistics.

        Returns:
            {
                'total_time': timedelta,
                'formatted_total': 'HH:MM:SS',
                'days_worked': days with recorded time,
                'average_per_day': timedelta,
                'formatted_average_per_day': 'HH:MM:SS',
                'days_with_missing_entries': int,
            }
        """
        total = sum((record.total_time for record in self.records), datetime.timedelta(0))
        days_worked = sum(1 for record in self.records if record.total_time > datetime.timedelta(0))
        average = total / days_worked if days_worked else datetime.timedelta(0)

        return {
            'total_time': total,
            'formatted_total': format_duration(total),
            'days_worked': days_worked,
            'average_per_day': average,
            'formatted_average_per_day': format_duration(average),
            'days_with_missing_entries': sum(1 for record in self.records if record.has_missing_entries),
        }

    def _rows(self):
        for record in self.records:
            for pair in record.entry_pairs:
                if pair.missing_entry:
                    status = "MISSING"
                elif pair.clock_out is None:
                    status = "ACTIVE"
                elif pair.day_boundary:
                    status = "OVERNIGHT"
                else:
                    status = ""
                yield (
                    record.date.strftime('%Y-%m-%d'),
                    _format_time(pair.clock_in, self.tz),
                    _format_time(pair.clock_out, self.tz),
                    format_duration(pair.duration),
                    status,
                )

    def to_text(self) -> str:
        """Generate a human-readable text report"""
        width = 60
        lines = ["=" * width, self.title.upper(), "=" * width]

        if not self.records:
            lines.append("No time entries found for this period.")
            return "\n".join(lines)

        lines.append(f"Period: {self.start_date} to {self.end_date}")
        lines.append("-" * width)
        lines.append(f"{'Date':<12} {'Clock In':<10} {'Clock Out':<10} {'Hours':<10} {'Status':<10}")
        lines.append("-" * width)
        for row in self._rows():
            lines.append(f"{row[0]:<12} {row[1]:<10} {row[2]:<10} {row[3]:<10} {row[4]:<10}".rstrip())
        lines.append("-" * width)

        summary = self.summary()
        lines.append("SUMMARY")
        lines.append("-" * width)
        lines.append(f"Total Hours Worked: {summary['formatted_total']}")
        lines.append(f"Days Worked: {summary['days_worked']}")
        lines.append(f"Average Hours per Day: {summary['formatted_average_per_day']}")
        if summary['days_with_missing_entries']:
            lines.append(f"Days with Missing Entries: {summary['days_with_missing_entries']}")
        lines.append("=" * width)

        return "\n".join(lines)

    def to_csv(self, filename: Optional[str] = None, export_root: Optional[str] = None) -> str:
        """
        Export report to CSV file.

        Args:
            filename: Optional filename. If not provided, generates one.
            export_root: Optional directory where the generated file is written.

        Returns:
            Path to the generated file.
        """
        if filename is None:
            start = self.start_date.strftime('%Y%m%d') if self.start_date else 'empty'
            end = self.end_date.strftime('%Y%m%d') if self.end_date else 'empty'
            root = export_root or os.path.join(os.getcwd(), 'exports')
            filename = os.path.join(root, f"WT_Report_{start}_{end}.csv")

        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow([self.title])
        writer.writerow(['Period:', f"{self.start_date} to {self.end_date}"])
        writer.writerow([])
        writer.writerow(['Date', 'Clock In', 'Clock Out', 'Hours Worked (HH:MM:SS)', 'Status'])
        for row in self._rows():
            writer.writerow(row)
        writer.writerow([])

        summary = self.summary()
        writer.writerow(['Summary'])
        writer.writerow(['Total Hours:', summary['formatted_total']])
        writer.writerow(['Days Worked:', summary['days_worked']])
        writer.writerow(['Average Hours per Day:', summary['formatted_average_per_day']])

        directory = os.path.dirname(filename)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(filename, 'w', newline='', encoding='utf-8') as csvfile:
            csvfile.write(buffer.getvalue())
        logger.info(f"WT Report export written to {filename}")

        return filename
