"""
wtforms for a JSON API.
Request bodies are flattened into wtforms field names (``items-0-product_id``)
so FieldList/FormField and the Optional/InputRequired validators behave as
they do for posted HTML forms.
"""
from typing import Any, Dict, Iterator, Tuple

from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import IntegerField
from wtforms.validators import NumberRange, Optional

from .exceptions import ValidationError


def flatten(data: Any, prefix: str = "") -> Iterator[Tuple[str, str]]:
    if isinstance(data, dict):
        for key, value in data.items():
            yield from flatten(value, f"{prefix}-{key}" if prefix else str(key))
    elif isinstance(data, (list, tuple)):
        for index, value in enumerate(data):
            yield from flatten(value, f"{prefix}-{index}")
    elif data is None:
        return
    elif isinstance(data, bool):
        yield prefix, "true" if data else "false"
    else:
        yield prefix, str(data)


class APIForm(FlaskForm):
    class Meta:
        csrf = False

    @classmethod
    def from_json(cls, **kwargs) -> "APIForm":
        payload = request.get_json(silent=True)
        if payload is not None and not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        return cls(formdata=MultiDict(list(flatten(payload or {}))), **kwargs)

    @classmethod
    def from_args(cls, **kwargs) -> "APIForm":
        return cls(formdata=request.args, **kwargs)

    def validated(self) -> "APIForm":
        if not self.validate():
            raise ValidationError("Invalid input", fields=self.errors)
        return self

    def provided(self, *names: str) -> Dict[str, Any]:
        """Data of the named fields that were present in the request."""
        return {
            name: self[name].data
            for name in names
            if self[name].raw_data and self[name].raw_data[0] != ""
        }


class PageForm(APIForm):
    page = IntegerField("Page", default=1, validators=[Optional(), NumberRange(min=1)])
    limit = IntegerField("Limit", default=20, validators=[Optional(), NumberRange(min=1, max=100)])

    @property
    def paging(self) -> Tuple[int, int]:
        return self.page.data or 1, self.limit.data or 20
