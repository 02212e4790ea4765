"""Labour Ledger package.

Attendance ledger and payroll reconciliation for labourers on projects,
organized by feature modules (attendance, payroll, reports, ...) with a thin
Flask controller layer over service/repository layers.
"""
