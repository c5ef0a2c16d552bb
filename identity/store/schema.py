"""Header layouts for the tables the identity core reads and mints IDs for"""

from typing import Dict, List

from .record_store import RecordStore

EMPLOYEES_HEADERS = ["Code", "Password", "Name", "Branch", "Role", "IsActive"]

# Business tables whose first column holds a sequential ID
INCOME_HEADERS = [
    "Entry_ID", "Branch", "Date", "Day", "Service_Name", "Amount", "Payment_Method",
    "Doctor_Transfer_No", "Service_Details", "Notes", "EmployeeCode", "EmployeeName",
    "Status", "Timestamp",
]
COST_HEADERS = [
    "Entry_ID", "Branch", "Date", "Day", "Cost_Name", "Amount", "Payment_Method",
    "Cost_Details", "Notes", "EmployeeCode", "EmployeeName", "Attachment_URL",
    "Status", "Timestamp",
]
LEADS_HEADERS = [
    "Lead_ID", "Timestamp", "Customer_Name", "Customer_Mobile", "Customer_National_ID",
    "Branch", "Service", "Lead_Source", "Sales_Employee_Code", "Sales_Employee_Name",
    "Quality", "Deal", "Sales_Feedback", "Deal_Status", "FollowUp_Needed",
]


def required_tables(employees_table: str = "Employees") -> Dict[str, List[str]]:
    return {
        employees_table: EMPLOYEES_HEADERS,
        "Income": INCOME_HEADERS,
        "cost": COST_HEADERS,
        "SalesandFollowup": LEADS_HEADERS,
    }


def ensure_tables(store: RecordStore, employees_table: str = "Employees") -> List[str]:
    """Create any missing table with its headers; returns the names created"""
    created = []
    for name, headers in required_tables(employees_table).items():
        if not store.exists(name):
            store.create_table(name, headers)
            created.append(name)
    return created


def check_tables(store: RecordStore, employees_table: str = "Employees") -> Dict[str, List[str]]:
    """Map each required table to its problems (missing table or missing columns)"""
    problems: Dict[str, List[str]] = {}
    for name, headers in required_tables(employees_table).items():
        if not store.exists(name):
            problems[name] = ["table missing"]
            continue
        present = set(store.table(name).headers)
        missing = [h for h in headers if h not in present]
        if missing:
            problems[name] = [f"missing column {h}" for h in missing]
    return problems
