from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.employees.schemas import EmployeeCreate, EmployeeUpdate, EmployeeOut, EmployeeListResponse
from app.modules.employees.service import EmployeeService

router = APIRouter(
    prefix="/employees",
    tags=["Employees"],
    responses={404: {"description": "Not found"}}
)


@router.get("/", response_model=EmployeeListResponse)
async def list_employees(
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """
    Empleados de los establecimientos del owner (admin: todos)

    Incluye services_count, revenue y schedulings_count; ordenado por revenue.
    """
    return EmployeeService(db).list_employees(current_user)


@router.post("/", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED)
async def create_employee(
    employee_data: EmployeeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """Sujeto al límite de empleados del plan (403 con message, current y limit)."""
    return EmployeeService(db).create_employee(current_user, employee_data)


@router.get("/{employee_id}", response_model=EmployeeOut)
async def get_employee(
    employee_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return EmployeeService(db).get_employee(current_user, employee_id)


@router.put("/{employee_id}", response_model=EmployeeOut)
async def update_employee(
    employee_id: UUID,
    employee_data: EmployeeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return EmployeeService(db).update_employee(current_user, employee_id, employee_data)


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee(
    employee_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    EmployeeService(db).delete_employee(current_user, employee_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
