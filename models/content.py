# -*- coding: utf-8 -*-
"""
Page content tree.

A page's content is a rose tree over a closed set of node kinds:
html, feature, row and formField. Rows hold columns and columns hold
further content, so rows may nest arbitrarily deep.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Union


CONTENT_HTML = "html"
CONTENT_FEATURE = "feature"
CONTENT_ROW = "row"
CONTENT_FORM_FIELD = "formField"

CONTENT_TYPES = (CONTENT_HTML, CONTENT_FEATURE, CONTENT_ROW, CONTENT_FORM_FIELD)


@dataclass(frozen=True)
class FieldValidators:
    """Built-in validators a form field can carry."""
    required: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    email: bool = False

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "FieldValidators":
        """Create validators from the authored camelCase mapping."""
        data = data or {}
        return cls(
            required=bool(data.get("required", False)),
            min_length=data.get("minLength"),
            max_length=data.get("maxLength"),
            email=bool(data.get("email", False)),
        )

    def is_empty(self) -> bool:
        return not (self.required or self.email
                    or self.min_length is not None or self.max_length is not None)


@dataclass(frozen=True)
class Html:
    html: str
    type: str = CONTENT_HTML
    data: Any = None
    classes: Optional[str] = None
    hidden: bool = False


@dataclass(frozen=True)
class Feature:
    feature_id: str
    type: str = CONTENT_FEATURE
    data: Any = None
    classes: Optional[str] = None
    hidden: bool = False


@dataclass(frozen=True)
class FormField:
    """Leaf node bound to a named field of the external data model."""
    field: str
    form_field_type: str = "text"
    type: str = CONTENT_FORM_FIELD
    validators: FieldValidators = field(default_factory=FieldValidators)
    placeholder: Optional[str] = None
    hint: Optional[str] = None
    tooltip: Optional[str] = None
    disabled: bool = False
    data_field: Optional[str] = None  # Option list source for select/buttonGroup
    data: Any = None
    classes: Optional[str] = None
    hidden: bool = False


@dataclass(frozen=True)
class Column:
    content: tuple = ()
    column_size: Optional[int] = None


@dataclass(frozen=True)
class Row:
    columns: tuple = ()
    type: str = CONTENT_ROW
    data: Any = None
    classes: Optional[str] = None
    hidden: bool = False


ContentNode = Union[Html, Feature, Row, FormField]


# =========================================================================
# Parsing
# =========================================================================

def _common(data: dict) -> Dict[str, Any]:
    return {
        "data": data.get("data"),
        "classes": data.get("classes"),
        "hidden": bool(data.get("hidden", False)),
    }


def _parse_html(data: dict) -> Html:
    return Html(html=data.get("html", ""), **_common(data))


def _parse_feature(data: dict) -> Feature:
    if not data.get("featureId"):
        raise ValueError("feature content requires 'featureId'")
    return Feature(feature_id=data["featureId"], **_common(data))


def _parse_row(data: dict) -> Row:
    columns = tuple(
        Column(
            content=parse_content_list(column.get("content", [])),
            column_size=column.get("columnSize"),
        )
        for column in data.get("columns", [])
    )
    return Row(columns=columns, **_common(data))


def _parse_form_field(data: dict) -> FormField:
    if not data.get("field"):
        raise ValueError("formField content requires 'field'")

    # minlength / maxlength may sit on the field itself as well
    validators = dict(data.get("validators") or {})
    if data.get("minlength") is not None:
        validators.setdefault("minLength", data["minlength"])
    if data.get("maxlength") is not None:
        validators.setdefault("maxLength", data["maxlength"])

    return FormField(
        field=data["field"],
        form_field_type=data.get("formFieldType", "text"),
        validators=FieldValidators.from_dict(validators),
        placeholder=data.get("placeholder"),
        hint=data.get("hint"),
        tooltip=data.get("tooltip"),
        disabled=bool(data.get("disabled", False)),
        data_field=data.get("dataField"),
        **_common(data),
    )


_PARSERS: Dict[str, Callable[[dict], ContentNode]] = {
    CONTENT_HTML: _parse_html,
    CONTENT_FEATURE: _parse_feature,
    CONTENT_ROW: _parse_row,
    CONTENT_FORM_FIELD: _parse_form_field,
}


def parse_content(data: dict) -> ContentNode:
    """
    Parse one authored content node.

    Raises:
        ValueError: unknown or missing ``type``, or a node missing its
            required key
    """
    content_type = data.get("type")
    parser = _PARSERS.get(content_type)
    if parser is None:
        raise ValueError(f"Unknown content type: {content_type!r}")
    return parser(data)


def parse_content_list(items: List[dict]) -> tuple:
    return tuple(parse_content(item) for item in items)


# =========================================================================
# Traversal
# =========================================================================

def iter_form_fields(content) -> Iterator[FormField]:
    """
    Yield every formField leaf, depth-first and left-to-right.

    Uses an explicit stack so deeply nested rows cannot hit the
    recursion limit. html and feature nodes are skipped.
    """
    stack = list(reversed(content))
    while stack:
        node = stack.pop()
        if node.type == CONTENT_FORM_FIELD:
            yield node
        elif node.type == CONTENT_ROW:
            for column in reversed(node.columns):
                stack.extend(reversed(column.content))
        elif node.type in (CONTENT_HTML, CONTENT_FEATURE):
            continue
        else:
            raise ValueError(f"Unknown content type: {node.type!r}")
