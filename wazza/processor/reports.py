"""
Read-only admin listings and dashboard figures.
"""
from datetime import date
from typing import Any, Dict, List, Optional

from wazza.database import db
from wazza.models import User, Business
from wazza.utils.logging import get_logger

log = get_logger(__name__)


def _search_term(search: Optional[str]) -> Optional[str]:
    search = (search or "").strip().lower()
    return f"%{search}%" if search else None


def list_users(page: int = 1, limit: int = 20, search: Optional[str] = None,
               role: Optional[str] = None, status: Optional[str] = None) -> Dict[str, Any]:
    where: List[str] = []
    params: List[Any] = []
    term = _search_term(search)
    if term:
        where.append("(LOWER(display_name) LIKE ? OR LOWER(email) LIKE ?)")
        params.extend([term, term])
    if role:
        where.append("role = ?")
        params.append(role)
    if status:
        where.append("status = ?")
        params.append(status)
    where_clause = f"WHERE {' AND '.join(where)}" if where else ""

    with db.connection() as (conn, cur):
        total = cur.execute(f"SELECT COUNT(*) AS total FROM user_table {where_clause}", params).fetchone()["total"]
        rows = cur.execute(
            f"SELECT * FROM user_table {where_clause} ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
            params + [limit, (page - 1) * limit],
        ).fetchall()
    return {"users": [User(**row).to_dict() for row in rows], "total": total}


def list_businesses(page: int = 1, limit: int = 20, search: Optional[str] = None,
                    status: Optional[str] = None) -> Dict[str, Any]:
    where: List[str] = []
    params: List[Any] = []
    term = _search_term(search)
    if term:
        where.append("(LOWER(b.business_name) LIKE ? OR LOWER(u.display_name) LIKE ?)")
        params.extend([term, term])
    if status:
        where.append("b.status = ?")
        params.append(status)
    where_clause = f"WHERE {' AND '.join(where)}" if where else ""
    base = "FROM business_table AS b JOIN user_table AS u ON u.id = b.owner_id"

    with db.connection() as (conn, cur):
        total = cur.execute(f"SELECT COUNT(*) AS total {base} {where_clause}", params).fetchone()["total"]
        rows = cur.execute(
            f"""
            SELECT b.*, u.display_name AS owner_name, u.email AS owner_email, u.status AS owner_status
            {base} {where_clause}
            ORDER BY b.created_at DESC, b.id DESC
            LIMIT ? OFFSET ?
            """,
            params + [limit, (page - 1) * limit],
        ).fetchall()

    businesses = []
    for row in rows:
        owner = {key: row.pop(key) for key in ("owner_name", "owner_email", "owner_status")}
        entry = Business(**row).to_dict()
        entry.update(owner)
        businesses.append(entry)
    return {"businesses": businesses, "total": total}


def _date_range(column: str, start_date: Optional[date], end_date: Optional[date]) -> tuple[str, List[str]]:
    clause, params = "", []
    if start_date:
        clause += f" AND {column} >= ?"
        params.append(f"{start_date.isoformat()} 00:00:00")
    if end_date:
        clause += f" AND {column} <= ?"
        params.append(f"{end_date.isoformat()} 23:59:59")
    return clause, params


def analytics(start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict[str, Any]:
    approved_range, approved_params = _date_range("approved_at", start_date, end_date)
    created_range, created_params = _date_range("created_at", start_date, end_date)
    completed_range, completed_params = _date_range("o.completed_at", start_date, end_date)

    with db.connection() as (conn, cur):
        active_users = cur.execute(
            "SELECT COUNT(*) AS total FROM user_table WHERE status = 'active'"
        ).fetchone()["total"]
        active_businesses = cur.execute(
            f"SELECT COUNT(*) AS total FROM business_table WHERE status = 'active'{approved_range}",
            approved_params,
        ).fetchone()["total"]
        pending_businesses = cur.execute(
            f"SELECT COUNT(*) AS total FROM business_table WHERE status = 'pending'{created_range}",
            created_params,
        ).fetchone()["total"]
        sales = cur.execute(
            f"SELECT COALESCE(SUM(o.total_amount), 0) AS total FROM order_table AS o WHERE o.status = 'collected'{completed_range}",
            completed_params,
        ).fetchone()["total"]
        top_products = cur.execute(
            f"""
            SELECT p.id AS product_id, p.name AS product_name, SUM(oi.quantity) AS sales_count
            FROM order_item_table AS oi
            JOIN product_table AS p ON p.id = oi.product_id
            JOIN order_table AS o ON o.id = oi.order_id
            WHERE o.status = 'collected'{completed_range}
            GROUP BY p.id, p.name
            ORDER BY sales_count DESC, p.id
            LIMIT 5
            """,
            completed_params,
        ).fetchall()

    return {
        "total_active_users": int(active_users),
        "total_active_businesses": int(active_businesses),
        "total_pending_businesses": int(pending_businesses),
        "total_sales_volume": float(sales or 0),
        "top_products": [
            {
                "product_id": row["product_id"],
                "product_name": row["product_name"],
                "sales_count": int(row["sales_count"]),
            }
            for row in top_products
        ],
    }
