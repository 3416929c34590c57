"""
Investment reporting queries
Recomputed from the investments table on every request, nothing is cached
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import extract, or_, text
from sqlmodel import Session, func, select

from models import Investment, Product


@dataclass
class InvestmentFilter:
    month: Optional[int] = None
    year: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    doctor: Optional[str] = None


def _apply_filters(statement, filters: Optional[InvestmentFilter]):
    if filters is None:
        return statement
    if filters.year:
        statement = statement.where(extract("year", Investment.investment_date) == filters.year)
    if filters.month:
        statement = statement.where(extract("month", Investment.investment_date) == filters.month)
    if filters.start_date:
        statement = statement.where(Investment.investment_date >= filters.start_date)
    if filters.end_date:
        statement = statement.where(Investment.investment_date <= filters.end_date)
    if filters.doctor:
        statement = statement.where(
            or_(Investment.doctor_code == filters.doctor, Investment.doctor_name == filters.doctor)
        )
    return statement


def _month_bucket(session: Session):
    if session.get_bind().dialect.name == "postgresql":
        return func.to_char(Investment.investment_date, "YYYY-MM")
    return func.strftime("%Y-%m", Investment.investment_date)


def summary(session: Session, filters: Optional[InvestmentFilter] = None) -> Dict[str, float]:
    statement = select(
        func.coalesce(func.sum(Investment.amount), 0),
        func.coalesce(func.sum(Investment.expected_returns), 0),
        func.coalesce(func.sum(Investment.actual_returns), 0),
    )
    total_amount, total_expected, total_actual = session.exec(_apply_filters(statement, filters)).one()
    return {
        "totalInvestments": float(total_amount or 0),
        "totalExpected": float(total_expected or 0),
        "totalActual": float(total_actual or 0),
    }


def summary_by_month(session: Session, filters: Optional[InvestmentFilter] = None) -> Dict[str, List[Any]]:
    """Monthly buckets in ascending order; months without investments are absent"""
    statement = select(
        _month_bucket(session).label("ym"),
        func.coalesce(func.sum(Investment.amount), 0),
        func.coalesce(func.sum(Investment.actual_returns), 0),
    )
    statement = _apply_filters(statement, filters).group_by(text("ym")).order_by(text("ym"))
    rows = session.exec(statement).all()
    return {
        "labels": [row[0] for row in rows],
        "amounts": [float(row[1] or 0) for row in rows],
        "actuals": [float(row[2] or 0) for row in rows],
    }


def dashboard_stats(session: Session) -> Dict[str, Any]:
    investment_count = session.exec(select(func.count()).select_from(Investment)).one()

    # Doctors with at least one investment, not the size of the doctors table
    active_doctors = session.exec(
        select(func.count(func.distinct(Investment.doctor_code))).where(Investment.doctor_code.is_not(None))
    ).one()

    product_count = session.exec(select(func.count()).select_from(Product)).one()

    total_amount, total_actual = session.exec(
        select(
            func.coalesce(func.sum(Investment.amount), 0),
            func.coalesce(func.sum(Investment.actual_returns), 0),
        )
    ).one()
    total_amount = float(total_amount or 0)
    roi = (float(total_actual or 0) / total_amount * 100) if total_amount > 0 else 0.0

    return {
        "totalInvestments": int(investment_count),
        "activeDoctors": int(active_doctors),
        "products": int(product_count),
        "roi": f"{roi:.2f}",
    }


def list_investments(session: Session, filters: Optional[InvestmentFilter] = None, limit: int = 200) -> List[Investment]:
    statement = _apply_filters(select(Investment), filters)
    statement = statement.order_by(Investment.created_at.desc(), Investment.id.desc()).limit(limit)
    return session.exec(statement).all()


def recent_investments(session: Session, limit: int = 10) -> List[Investment]:
    return list_investments(session, None, limit)
