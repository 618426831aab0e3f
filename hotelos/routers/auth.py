"""
Authentication routes
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from hotelos.database import get_db
from hotelos.errors import HotelOSError, to_http_exception
from hotelos.models.ontology import Employee
from hotelos.models.schemas import LoginRequest, LoginResponse, EmployeeResponse
from hotelos.services.employee_service import EmployeeService
from hotelos.security.auth import get_current_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """Log in and receive a bearer token"""
    service = EmployeeService(db)
    try:
        return service.authenticate(data.username, data.password)
    except HotelOSError as e:
        raise to_http_exception(e)


@router.get("/me", response_model=EmployeeResponse)
def get_current_user_info(current_user: Employee = Depends(get_current_user)):
    return current_user
