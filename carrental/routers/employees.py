# carrental/routers/employees.py
"""Employee accounts (admin only)."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from carrental.database import get_db
from carrental.deps import Actor, require_roles
from carrental.schemas.user import EmployeeCreate, PasswordChange
from carrental.services import user_service

router = APIRouter()
admin = require_roles("admin")


@router.get("/employees", summary="List employees")
def list_employees(db: Session = Depends(get_db), actor: Actor = Depends(admin)):
    return [user_service.employee_row(u) for u in user_service.list_employees(db)]


@router.post("/employees", status_code=status.HTTP_201_CREATED, summary="Add an employee")
def add_employee(body: EmployeeCreate, db: Session = Depends(get_db), actor: Actor = Depends(admin)):
    employee = user_service.create_employee(db, body)
    return {"message": "Employee added successfully", "employee": user_service.employee_row(employee)}


@router.patch("/employees/{employee_id}/password", summary="Set an employee's password")
def change_password(
    employee_id: int, body: PasswordChange, db: Session = Depends(get_db), actor: Actor = Depends(admin)
):
    employee = user_service.change_employee_password(db, employee_id, body.new_password)
    return {
        "message": "Employee password updated successfully",
        "employee": {"id": employee.id, "name": employee.name, "email": employee.email},
    }


@router.delete("/employees/{employee_id}", summary="Deactivate an employee")
def deactivate_employee(employee_id: int, db: Session = Depends(get_db), actor: Actor = Depends(admin)):
    employee = user_service.deactivate_employee(db, employee_id)
    return {"message": "Employee deactivated successfully", "employee": user_service.employee_row(employee)}
