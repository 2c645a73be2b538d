# carrental/routers/customers.py
"""Customer profiles, search and booking history."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from carrental.database import get_db
from carrental.deps import Actor, require_roles
from carrental.schemas.customer import CustomerCreate, CustomerUpdate, CustomerOut
from carrental.services import customer_service

router = APIRouter()
staff = require_roles("admin", "employee")


@router.get("/customers", response_model=list[CustomerOut], summary="List customers")
def list_customers(db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    return customer_service.list_customers(db)


@router.post("/customers", response_model=CustomerOut, status_code=status.HTTP_201_CREATED, summary="Add a customer")
def add_customer(body: CustomerCreate, db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    return customer_service.create_customer(db, **body.model_dump())


@router.get("/customers/search", response_model=list[CustomerOut], summary="Search by phone, ID card or name")
def search_customers(q: str = Query(min_length=1), db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    return customer_service.search_customers(db, q)


@router.get("/customers/{customer_id}", response_model=CustomerOut, summary="Customer by id")
def get_customer(customer_id: int, db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    return customer_service.get_customer(db, customer_id)


@router.get("/customers/{customer_id}/details", summary="Customer profile, bookings and spend")
def customer_details(customer_id: int, db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    return customer_service.customer_details(db, customer_id)


@router.patch("/customers/{customer_id}", response_model=CustomerOut, summary="Update a customer")
def update_customer(
    customer_id: int, body: CustomerUpdate, db: Session = Depends(get_db), actor: Actor = Depends(staff)
):
    return customer_service.update_customer(db, customer_id, body.model_dump(exclude_unset=True))
