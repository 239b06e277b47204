"""Employee module: Employee, Department, Location models, schemas and services."""

from workforce.employees.models import Department, Employee, Location

__all__ = ["Employee", "Department", "Location"]
