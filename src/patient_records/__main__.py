"""Entry point for running patient_records as a module.

This allows the package to be executed as:
    python -m patient_records
"""

from patient_records.cli.main import cli

if __name__ == "__main__":
    cli()
