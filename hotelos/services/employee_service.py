"""
Employee service
Front-desk accounts and login
"""
from typing import Optional
from sqlalchemy.orm import Session
from hotelos.errors import AuthorizationError, ConflictError
from hotelos.models.ontology import Employee, EmployeeRole
from hotelos.security.auth import get_password_hash, verify_password, create_access_token


class EmployeeService:
    """Employee service"""

    def __init__(self, db: Session):
        self.db = db

    def get_employee(self, employee_id: int) -> Optional[Employee]:
        return self.db.query(Employee).filter(Employee.id == employee_id).first()

    def get_employee_by_username(self, username: str) -> Optional[Employee]:
        return self.db.query(Employee).filter(Employee.username == username).first()

    def create_employee(self, username: str, password: str, full_name: str,
                        role: EmployeeRole = EmployeeRole.RECEPTIONIST) -> Employee:
        if self.get_employee_by_username(username):
            raise ConflictError(f"Username '{username}' already exists", context={"username": username})

        employee = Employee(
            username=username,
            password_hash=get_password_hash(password),
            full_name=full_name,
            role=role,
        )
        self.db.add(employee)
        self.db.commit()
        self.db.refresh(employee)
        return employee

    def authenticate(self, username: str, password: str) -> dict:
        """Check credentials and issue a token"""
        employee = self.get_employee_by_username(username)
        if not employee or not verify_password(password, employee.password_hash):
            raise AuthorizationError("Incorrect username or password")

        if not employee.is_active:
            raise AuthorizationError("Account disabled", context={"employee_id": employee.id})

        return {
            'access_token': create_access_token(employee.id, employee.role),
            'token_type': 'bearer',
            'employee': employee,
        }

    def require_active(self, employee_id: Optional[int]) -> Employee:
        """The operator behind a mutation must be a known, active employee"""
        employee = self.get_employee(employee_id) if employee_id is not None else None
        if not employee or not employee.is_active:
            raise AuthorizationError(
                "An active operator is required", context={"operator_id": employee_id}
            )
        return employee
