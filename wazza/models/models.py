from flask import current_app

from wazza.database import db

from flask_login import UserMixin

import json
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal

import bcrypt

from typing import Any, Dict, Generator, List, Optional

from wazza.database.migrations import get_columns
from wazza.database import Cursor
from wazza.utils.logging import get_logger
from wazza.utils import encryption
from wazza.utils.helpers import timestamp, parse_timestamp, now, generate_token, TIMESTAMP_FORMAT
log = get_logger(__name__)


@contextmanager
def use_cursor(cur: Optional[Cursor] = None) -> Generator[Cursor, None, None]:
    """Reuse the caller's transaction, or open one for a single call."""
    if cur is not None:
        yield cur
        return
    with db.transaction() as new_cur:
        yield new_cur


def serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.strftime(TIMESTAMP_FORMAT)
    if isinstance(value, Decimal):
        return float(value)
    return value


def set_defaults(default_list: List[Dict[str, Any]]) -> bool:
    classes = {
        "USER": User,
    }
    try:
        for entry in default_list:
            if entry["type"] not in ["NOT NULL", "NOT_NULL"]:
                continue
            cls_ = classes[entry["object_name"]]
            if cls_.get_one(**{entry["key"]: entry["value"]}):
                continue
            log.info(f"Setting default {entry['object_name']} {entry['key']}={entry['value']}")
            object_data = entry["data"].copy()
            object_data[entry["key"]] = entry["value"]
            cls_.create(**object_data)
    except Exception as e:
        log.error(f"Failed loading defaults, {e}")
        raise ValueError(f"Failed loading defaults, {e}") from e
    return True


def _decode(value: Any) -> Any:
    if isinstance(value, str) and value:
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value
    return value


def _encode(values: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: json.dumps(value) if isinstance(value, (dict, list)) else value
        for key, value in values.items()
    }


class BaseClass:
    """
    One row of ``table_name``. Columns become attributes; ``non_update``
    columns are never written back, ``hidden`` ones never serialized, and
    ``json_columns`` hold JSON text.
    Every method takes an optional cursor so it can join the caller's
    transaction.
    """
    non_update: List[str] = []
    table_name: Optional[str] = None
    hidden: List[str] = []
    json_columns: List[str] = []

    def __init__(self, **row: Any) -> None:
        if self.table_name is None:
            raise ValueError(f"{type(self).__name__} has no table_name")
        for column, value in row.items():
            setattr(self, column, _decode(value) if column in self.json_columns else value)

    @classmethod
    def new(cls, cur: Optional[Cursor] = None, **fields) -> 'BaseClass':
        if "id" in fields:
            raise KeyError("id is generated by the database")
        if cls.table_name is None:
            raise ValueError(f"{cls.__name__} has no table_name")
        with use_cursor(cur) as cursor:
            unknown = set(fields) - set(get_columns(cursor, cls.table_name))
            if unknown:
                raise KeyError(f"Unknown columns for {cls.table_name}: {', '.join(sorted(unknown))}")
            new_id = cursor.insert(cls.table_name, _encode(fields))
            row = cursor.execute(f"SELECT * FROM {cls.table_name} WHERE id = ?", (new_id,)).fetchone()
        return cls(**row)

    @classmethod
    def get(cls, cur: Optional[Cursor] = None, **filters) -> List['BaseClass']:
        query = f"SELECT * FROM {cls.table_name}"
        if filters:
            query += " WHERE " + " AND ".join(f"{column} = ?" for column in filters)
        with use_cursor(cur) as cursor:
            rows = cursor.execute(query, tuple(filters.values())).fetchall()
        return [cls(**row) for row in rows]

    @classmethod
    def get_one(cls, cur: Optional[Cursor] = None, **filters) -> Optional['BaseClass']:
        found = cls.get(cur, **filters)
        return found[0] if found else None

    @classmethod
    def get_many(cls, ids: List[Any], cur: Optional[Cursor] = None) -> List['BaseClass']:
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        with use_cursor(cur) as cursor:
            rows = cursor.execute(
                f"SELECT * FROM {cls.table_name} WHERE id IN ({placeholders})", tuple(ids)
            ).fetchall()
        return [cls(**row) for row in rows]

    def update(self, *columns: str, cur: Optional[Cursor] = None) -> None:
        """Write back ``columns`` (every updatable attribute when none are named)."""
        if not columns:
            columns = tuple(k for k in vars(self) if k not in self.non_update and not k.startswith("_"))
        refused = [k for k in columns if k in self.non_update or not hasattr(self, k)]
        if refused:
            raise KeyError(f"Cannot update {', '.join(refused)} on {self.table_name}")
        if not columns:
            log.debug(f"Nothing to update on {self.table_name} {self.id}")
            return
        values = {k: getattr(self, k) for k in columns}
        if hasattr(self, "updated_at"):
            self.updated_at = values["updated_at"] = timestamp()
        values = _encode(values)
        assignments = ", ".join(f"{k} = ?" for k in values)
        with use_cursor(cur) as cursor:
            cursor.execute(
                f"UPDATE {self.table_name} SET {assignments} WHERE id = ?",
                (*values.values(), self.id),
            )

    def delete(self, cur: Optional[Cursor] = None) -> None:
        with use_cursor(cur) as cursor:
            cursor.execute(f"DELETE FROM {self.table_name} WHERE id = ?", (self.id,))

    def to_dict(self) -> Dict[str, Any]:
        return {
            k: serialize(v) for k, v in vars(self).items()
            if not k.startswith("_") and k not in self.hidden
        }


class User(UserMixin, BaseClass):
    """
    flask-login identifies a user by the session row that authenticated the
    request, so ``get_id`` returns the session id rather than the user id.
    """
    table_name = "user_table"
    non_update = ["id", "role", "created_at", "updated_at", "session_id"]
    hidden = ["session_id"]

    def get_id(self) -> str:
        return str(getattr(self, "session_id", None) or "")

    @classmethod
    def create(cls, password: str, cur: Optional[Cursor] = None, **fields) -> 'User':
        stamp = timestamp()
        fields["email"] = fields["email"].lower()
        fields.setdefault("created_at", stamp)
        fields.setdefault("updated_at", stamp)
        with use_cursor(cur) as cursor:
            user = cls.new(cursor, **fields)
            cursor.execute(
                "INSERT INTO user_password_table (user_id, password_hash, updated_at) VALUES (?, ?, ?)",
                (user.id, hash_password(password), stamp),
            )
        log.info(f"Created {user.role} user {user.id} ({user.status})")
        return user

    @classmethod
    def find_by_email(cls, email: str, cur: Optional[Cursor] = None) -> Optional['User']:
        return cls.get_one(cur, email=email.strip().lower())

    def check_password(self, input_password: str) -> bool:
        row = db.execute(
            "SELECT password_hash FROM user_password_table WHERE user_id = ?",
            (self.id,), fetch="one",
        )
        if not row:
            return False
        return bcrypt.checkpw(input_password.encode('utf-8'), row["password_hash"].encode('utf-8'))

    def get_business(self, cur: Optional[Cursor] = None) -> Optional['Business']:
        return Business.get_one(cur, owner_id=self.id)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["latitude"] = to_coordinate(data.get("latitude"))
        data["longitude"] = to_coordinate(data.get("longitude"))
        return data


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def to_coordinate(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


class Session(BaseClass):
    table_name = "session_table"
    non_update = ["id", "user_id", "created_at"]

    @classmethod
    def start(cls, user_id: int, cur: Optional[Cursor] = None) -> 'Session':
        lifetime = current_app.config.get("SESSION_EXPIRATION")
        data = {
            "id": generate_token(32),
            "user_id": user_id,
            "created_at": timestamp(),
            "last_accessed": timestamp(),
            "expires_at": timestamp(seconds=lifetime),
        }
        with use_cursor(cur) as cursor:
            cursor.execute(
                "INSERT INTO session_table (id, user_id, created_at, last_accessed, expires_at) VALUES (?, ?, ?, ?, ?)",
                tuple(data.values()),
            )
        return cls(**data)

    @classmethod
    def load(cls, session_id: str) -> Optional['Session']:
        """Return a live session, deleting it if it has expired."""
        session = cls.get_one(id=session_id)
        if session is None:
            return None
        if parse_timestamp(session.expires_at) <= now():
            log.info(f"Session for user {session.user_id} expired")
            session.delete()
            return None
        return session

    def touch(self) -> None:
        self.last_accessed = timestamp()
        self.update("last_accessed")

    @classmethod
    def end_all(cls, user_id: int, cur: Optional[Cursor] = None) -> int:
        with use_cursor(cur) as cursor:
            return cursor.execute("DELETE FROM session_table WHERE user_id = ?", (user_id,)).rowcount


class Business(BaseClass):
    table_name = "business_table"
    non_update = ["id", "owner_id", "status", "approved_at", "approved_by", "created_at", "updated_at"]

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["latitude"] = to_coordinate(data.get("latitude"))
        data["longitude"] = to_coordinate(data.get("longitude"))
        return data

    def map_entry(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.business_name,
            "address": self.address,
            "latitude": to_coordinate(self.latitude),
            "longitude": to_coordinate(self.longitude),
            "description": self.description or f"{self.business_name} - {self.business_type}",
            "phone": self.phone,
            "website": self.website,
            "business_type": self.business_type,
        }

    @classmethod
    def map_listing(cls) -> List[Dict[str, Any]]:
        rows = db.execute(
            """
            SELECT * FROM business_table
            WHERE status = 'active'
              AND latitude IS NOT NULL
              AND longitude IS NOT NULL
              AND address IS NOT NULL
            ORDER BY business_name
            """
        )
        return [cls(**row).map_entry() for row in rows]


class Product(BaseClass):
    table_name = "product_table"
    non_update = ["id", "business_id", "created_at", "updated_at"]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["price"] = float(self.price)
        return data


class Order(BaseClass):
    table_name = "order_table"
    non_update = ["id", "business_id", "buyer_id", "redemption_code", "created_at", "updated_at"]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["total_amount"] = float(self.total_amount)
        return data


class OrderItem(BaseClass):
    table_name = "order_item_table"
    non_update = ["id", "order_id", "product_id", "quantity", "unit_price", "total_price"]

    @classmethod
    def for_orders(cls, order_ids: List[int], cur: Optional[Cursor] = None) -> Dict[int, List[Dict[str, Any]]]:
        """Items of several orders with the product name, grouped by order id."""
        grouped: Dict[int, List[Dict[str, Any]]] = {order_id: [] for order_id in order_ids}
        if not order_ids:
            return grouped
        placeholders = ", ".join("?" for _ in order_ids)
        with use_cursor(cur) as cursor:
            rows = cursor.execute(
                f"""
                SELECT oi.*, p.name AS product_name, p.image_url AS product_image_url
                FROM order_item_table AS oi
                LEFT JOIN product_table AS p ON p.id = oi.product_id
                WHERE oi.order_id IN ({placeholders})
                ORDER BY oi.id
                """,
                tuple(order_ids),
            ).fetchall()
        for row in rows:
            item = cls(**row).to_dict()
            item["unit_price"] = float(item["unit_price"])
            item["total_price"] = float(item["total_price"])
            grouped.setdefault(row["order_id"], []).append(item)
        return grouped


class GiftOrder(BaseClass):
    table_name = "gift_order_table"
    non_update = ["id", "order_id", "redemption_code", "recipient_national_id", "created_at"]
    hidden = ["recipient_national_id", "redemption_code"]

    @property
    def national_id(self) -> str:
        return encryption.decrypt_data(self.recipient_national_id)

    def matches_national_id(self, national_id: str) -> bool:
        return self.national_id.strip().upper() == national_id.strip().upper()

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["is_redeemed"] = bool(self.is_redeemed)
        return data


class Notification(BaseClass):
    table_name = "notification_table"
    json_columns = ["data"]
    non_update = ["id", "recipient_id", "recipient_type", "type", "sent_at"]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["is_read"] = self.read_at is not None
        if not isinstance(data.get("data"), dict):
            data["data"] = {}
        return data
