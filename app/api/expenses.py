"""
Project bookkeeping endpoints: expenses, incomes, accounts and companies.

Expenses and incomes are embedded on the project; accounts and companies are
their own tables scoped by project id.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from app.api.common import CamelModel, new_embedded_id
from app.db.database import get_db
from app.db.models import Account, Company, Project
from app.exceptions import NotFound, ValidationError
from app.services.analyzers import get_project

router = APIRouter()


class ExpenseData(CamelModel):
    """An expense line. Amounts are kept as entered."""

    date: Optional[str] = None
    invoice_no: Optional[str] = None
    description: Optional[str] = None
    account: Optional[str] = None
    company: Optional[str] = None
    category: Optional[str] = None
    class_name: Optional[str] = None
    amount: Optional[str] = None
    tax: Optional[str] = None
    file: Optional[str] = None


class IncomeData(CamelModel):
    """An income line."""

    date: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    amount: Optional[str] = None


class AccountData(CamelModel):
    name: Optional[str] = None


class AccountResponse(CamelModel):
    id: str
    project_id: str
    name: str


class CompanyData(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    label: Optional[str] = None
    rating: Optional[str] = None
    notes: Optional[str] = None


class CompanyResponse(CompanyData):
    id: str
    project_id: str
    name: str


def account_to_response(account: Account) -> AccountResponse:
    return AccountResponse(id=account.id, project_id=account.project_id, name=account.name)


def company_to_response(company: Company) -> CompanyResponse:
    return CompanyResponse(
        id=company.id,
        project_id=company.project_id,
        name=company.name,
        email=company.email,
        phone=company.phone,
        label=company.label,
        rating=company.rating,
        notes=company.notes,
    )


def _append_line(db: Session, project: Project, field: str, line: Dict[str, Any]) -> Dict:
    entry = {"id": new_embedded_id(), **line}
    setattr(project, field, (getattr(project, field) or []) + [entry])
    flag_modified(project, field)
    db.commit()
    return entry


def _update_line(
    db: Session, project: Project, field: str, line_id: str, changes: Dict[str, Any], label: str
) -> Dict:
    lines = list(getattr(project, field) or [])
    for idx, line in enumerate(lines):
        if line.get("id") == line_id:
            lines[idx] = {**line, **changes, "id": line_id}
            setattr(project, field, lines)
            flag_modified(project, field)
            db.commit()
            return lines[idx]
    raise NotFound(f"{label} not found")


def _remove_line(db: Session, project: Project, field: str, line_id: str) -> None:
    remaining = [
        line for line in (getattr(project, field) or []) if line.get("id") != line_id
    ]
    setattr(project, field, remaining)
    flag_modified(project, field)
    db.commit()


# ============================================================================
# ACCOUNTS
# ============================================================================


@router.get("/accounts/{project_id}", response_model=List[AccountResponse])
async def list_accounts(project_id: str, db: Session = Depends(get_db)):
    """List accounts for a project."""
    accounts = db.query(Account).filter(Account.project_id == project_id).all()
    return [account_to_response(a) for a in accounts]


@router.post("/accounts/{project_id}", response_model=AccountResponse, status_code=201)
async def create_account(
    project_id: str,
    data: AccountData,
    db: Session = Depends(get_db),
):
    """Add an account to a project."""
    get_project(db, project_id)
    if not data.name:
        raise ValidationError("Account name is required.")

    account = Account(project_id=project_id, name=data.name)
    db.add(account)
    db.commit()
    db.refresh(account)
    return account_to_response(account)


@router.put("/accounts/{project_id}/{account_id}", response_model=AccountResponse)
async def update_account(
    project_id: str,
    account_id: str,
    data: AccountData,
    db: Session = Depends(get_db),
):
    """Rename an account."""
    account = (
        db.query(Account)
        .filter(Account.id == account_id, Account.project_id == project_id)
        .first()
    )
    if not account:
        raise NotFound("Account not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(account, field, value)
    db.commit()
    db.refresh(account)
    return account_to_response(account)


@router.delete("/accounts/{project_id}/{account_id}")
async def delete_account(project_id: str, account_id: str, db: Session = Depends(get_db)):
    """Delete an account."""
    db.query(Account).filter(
        Account.id == account_id, Account.project_id == project_id
    ).delete()
    db.commit()
    return {"success": True}


# ============================================================================
# COMPANIES
# ============================================================================


@router.get("/companies/{project_id}", response_model=List[CompanyResponse])
async def list_companies(project_id: str, db: Session = Depends(get_db)):
    """List companies for a project."""
    companies = db.query(Company).filter(Company.project_id == project_id).all()
    return [company_to_response(c) for c in companies]


@router.post("/companies/{project_id}", response_model=CompanyResponse, status_code=201)
async def create_company(
    project_id: str,
    data: CompanyData,
    db: Session = Depends(get_db),
):
    """Add a company to a project."""
    get_project(db, project_id)
    if not data.name:
        raise ValidationError("Company name is required.")

    company = Company(project_id=project_id, **data.model_dump())
    db.add(company)
    db.commit()
    db.refresh(company)
    return company_to_response(company)


@router.put("/companies/{project_id}/{company_id}", response_model=CompanyResponse)
async def update_company(
    project_id: str,
    company_id: str,
    data: CompanyData,
    db: Session = Depends(get_db),
):
    """Update a company."""
    company = (
        db.query(Company)
        .filter(Company.id == company_id, Company.project_id == project_id)
        .first()
    )
    if not company:
        raise NotFound("Company not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(company, field, value)
    db.commit()
    db.refresh(company)
    return company_to_response(company)


@router.delete("/companies/{project_id}/{company_id}")
async def delete_company(project_id: str, company_id: str, db: Session = Depends(get_db)):
    """Delete a company."""
    db.query(Company).filter(
        Company.id == company_id, Company.project_id == project_id
    ).delete()
    db.commit()
    return {"success": True}


# ============================================================================
# INCOMES
# ============================================================================


@router.get("/incomes/{project_id}")
async def list_incomes(project_id: str, db: Session = Depends(get_db)):
    """List incomes for a project."""
    return get_project(db, project_id).incomes or []


@router.post("/incomes/{project_id}", status_code=201)
async def create_income(
    project_id: str,
    data: IncomeData,
    db: Session = Depends(get_db),
):
    """Record an income; every field is required."""
    project = get_project(db, project_id)
    if not (data.date and data.description and data.type and data.amount):
        raise ValidationError("All fields are required.")
    return _append_line(db, project, "incomes", data.to_document())


@router.put("/incomes/{project_id}/{income_id}")
async def update_income(
    project_id: str,
    income_id: str,
    data: IncomeData,
    db: Session = Depends(get_db),
):
    """Update an income."""
    project = get_project(db, project_id)
    return _update_line(db, project, "incomes", income_id, data.to_document(), "Income")


@router.delete("/incomes/{project_id}/{income_id}")
async def delete_income(project_id: str, income_id: str, db: Session = Depends(get_db)):
    """Delete an income."""
    project = get_project(db, project_id)
    _remove_line(db, project, "incomes", income_id)
    return {"success": True}


# ============================================================================
# EXPENSES
# ============================================================================


@router.get("/{project_id}")
async def list_expenses(project_id: str, db: Session = Depends(get_db)):
    """List expenses for a project."""
    return get_project(db, project_id).expenses or []


@router.post("/{project_id}", status_code=201)
async def create_expense(
    project_id: str,
    data: ExpenseData,
    db: Session = Depends(get_db),
):
    """Add an expense to a project."""
    project = get_project(db, project_id)
    return _append_line(db, project, "expenses", data.to_document())


@router.put("/{project_id}/{expense_id}")
async def update_expense(
    project_id: str,
    expense_id: str,
    data: ExpenseData,
    db: Session = Depends(get_db),
):
    """Update an expense."""
    project = get_project(db, project_id)
    return _update_line(db, project, "expenses", expense_id, data.to_document(), "Expense")


@router.delete("/{project_id}/{expense_id}")
async def delete_expense(project_id: str, expense_id: str, db: Session = Depends(get_db)):
    """Delete an expense."""
    project = get_project(db, project_id)
    _remove_line(db, project, "expenses", expense_id)
    return {"success": True}
