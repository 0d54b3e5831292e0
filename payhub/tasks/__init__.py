"""
Celery tasks package.

Import directly from modules when needed:
  from payhub.tasks.payslip_tasks import process_payslip_file
"""
