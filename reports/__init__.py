"""Monthly and yearly report generation with CSV/JSON export."""

from reports.export import monthly_report_to_csv, report_to_json, transactions_to_csv, yearly_report_to_csv
from reports.monthly import generate_monthly_report, get_available_months
from reports.yearly import generate_yearly_report, get_available_years

__all__ = [
    "generate_monthly_report",
    "get_available_months",
    "generate_yearly_report",
    "get_available_years",
    "monthly_report_to_csv",
    "yearly_report_to_csv",
    "transactions_to_csv",
    "report_to_json",
]
