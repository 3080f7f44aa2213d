"""Widgets: create a Dash control, read submitted raw text, write external state back."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from dash import dcc

from . import config
from .converters import Converter
from .errors import DefinitionError, ValidationError


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class FieldError:
    message: str


@dataclass(frozen=True)
class Fatal:
    error: BaseException


ReadResult = Union[Ok, FieldError, Fatal]


class Widget:
    kind = "widget"
    # True when the control renders its own label (checkboxes)
    labels_itself = False
    required = False

    def create(self, key: str, label: str, component_id: Dict[str, str]) -> Any:
        raise NotImplementedError

    def raw_value(self, control_value: Any) -> Optional[str]:
        """Control value -> the raw text a browser form submission would carry."""
        raise NotImplementedError

    def read(self, key: str, raw: Optional[str]) -> Any:
        raise NotImplementedError

    def write(self, key: str, raw: Optional[str]) -> Any:
        """Raw text from the address bar -> control value. Never validates."""
        raise NotImplementedError

    def initial_value(self) -> Any:
        raise NotImplementedError

    def try_read(self, key: str, raw: Optional[str]) -> ReadResult:
        try:
            return Ok(self.read(key, raw))
        except ValidationError as exc:
            return FieldError(str(exc))
        except Exception as exc:
            return Fatal(exc)


class TextWidget(Widget):
    kind = "text"

    def __init__(
        self,
        converter: Optional[Converter] = None,
        required: bool = True,
        default: Any = None,
        default_text: Optional[str] = None,
        input_type: str = "text",
    ):
        self.converter = converter
        self.default = default
        self.required = False if default is not None else required
        if default_text is None and default is not None:
            default_text = str(default)
        self.default_text = default_text
        self.input_type = input_type

    def create(self, key: str, label: str, component_id: Dict[str, str]) -> dcc.Input:
        return dcc.Input(
            id=component_id,
            name=key,
            type=self.input_type,
            value=self.initial_value(),
            autoComplete="off",
            required=self.required,
            placeholder=self.default_text,
        )

    def raw_value(self, control_value: Any) -> Optional[str]:
        if control_value is None:
            return None
        return control_value if isinstance(control_value, str) else str(control_value)

    def read(self, key: str, raw: Optional[str]) -> Any:
        if raw:
            return raw if self.converter is None else self.converter(raw)
        if self.required:
            raise ValidationError(f"empty value for {key}")
        return self.default

    def write(self, key: str, raw: Optional[str]) -> str:
        return "" if raw is None else raw

    def initial_value(self) -> str:
        return ""


class CheckBoxWidget(Widget):
    kind = "checkbox"
    labels_itself = True

    def __init__(self, default: bool = False):
        self.default = bool(default)

    def create(self, key: str, label: str, component_id: Dict[str, str]) -> dcc.Checklist:
        return dcc.Checklist(
            id=component_id,
            options=[{"label": label, "value": config.CHECKBOX_ON}],
            value=self.initial_value(),
        )

    def raw_value(self, control_value: Any) -> Optional[str]:
        if control_value and config.CHECKBOX_ON in control_value:
            return config.CHECKBOX_ON
        # An unchecked box that starts checked must still reach the URL.
        return config.CHECKBOX_OFF if self.default else None

    def read(self, key: str, raw: Optional[str]) -> bool:
        return bool(raw) and raw != config.CHECKBOX_OFF

    def write(self, key: str, raw: Optional[str]) -> List[str]:
        return [config.CHECKBOX_ON] if self.read(key, raw) else []

    def initial_value(self) -> List[str]:
        return [config.CHECKBOX_ON] if self.default else []


@dataclass
class SelectOption:
    name: str
    value: Any
    text: Optional[str] = None

    def __post_init__(self):
        if self.text is None:
            self.text = self.name


class SelectWidget(Widget):
    kind = "select"

    def __init__(
        self,
        options: Union[Sequence[SelectOption], Mapping[str, Any]],
        default: Optional[str] = None,
    ):
        if isinstance(options, Mapping):
            options = [SelectOption(name, value) for name, value in options.items()]
        self.options: List[SelectOption] = list(options)
        if not self.options:
            raise DefinitionError("select widget needs at least one option")
        self._values: Dict[str, Any] = {}
        for opt in self.options:
            if opt.name in self._values:
                raise DefinitionError(f"select option name {opt.name} already used")
            self._values[opt.name] = opt.value
        if default is None:
            default = self.options[0].name
        elif default not in self._values:
            raise DefinitionError(f"default option {default} is not one of the options")
        self.default = default

    def create(self, key: str, label: str, component_id: Dict[str, str]) -> dcc.Dropdown:
        return dcc.Dropdown(
            id=component_id,
            options=[{"label": opt.text, "value": opt.name} for opt in self.options],
            value=self.initial_value(),
            clearable=False,
            searchable=False,
        )

    def raw_value(self, control_value: Any) -> Optional[str]:
        return None if control_value is None else str(control_value)

    def read(self, key: str, raw: Optional[str]) -> Any:
        if not raw:
            return self._values[self.default]
        try:
            return self._values[raw]
        except KeyError:
            raise ValidationError(f"unknown option {raw} for {key}") from None

    def write(self, key: str, raw: Optional[str]) -> str:
        return raw if raw in self._values else self.default

    def initial_value(self) -> str:
        return self.default
