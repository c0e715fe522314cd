"""
Parser for ``.proto`` source text.

Handles the declarations a descriptor file needs: package, imports, messages
(with nesting, oneofs and map fields) and enums. Options, reserved ranges,
services and extensions are consumed and dropped.
"""

from __future__ import annotations

import re
from typing import Any, NamedTuple, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from .descriptors import (
    EnumDescriptor,
    EnumValueDescriptor,
    FieldDescriptor,
    FieldLabel,
    FileDescriptor,
    MessageDescriptor,
)
from .errors import MalformedSchemaError, build_error_path, format_pydantic_error

M = TypeVar("M", bound=BaseModel)

_TOKEN_RE = re.compile(
    r"""
      (?P<ws>\s+)
    | (?P<comment>//[^\n]*|/\*.*?\*/)
    | (?P<string>"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*')
    | (?P<number>-?(?:0[xX][0-9a-fA-F]+|\d+(?:\.\d*)?(?:[eE][+-]?\d+)?))
    | (?P<ident>\.?[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*)
    | (?P<symbol>[{}\[\]()<>;=,:+-])
    """,
    re.VERBOSE | re.DOTALL,
)

_LABELS = {label.value: label for label in FieldLabel}
_SKIPPED_STATEMENTS = {"option", "reserved", "extensions"}
_SKIPPED_BLOCKS = {"service", "extend"}


def _parse_int(text: str) -> int:
    """Parse a decimal, hex (0x1F) or octal (017) integer literal, optionally negative."""
    digits = text.lstrip("-")
    sign = -1 if text.startswith("-") else 1
    if len(digits) > 1 and digits[0] == "0" and digits.isdigit():
        return sign * int(digits, 8)
    return sign * int(digits, 0)


class Token(NamedTuple):
    kind: str
    value: str
    line: int


def tokenize(filename: str, text: str) -> list[Token]:
    tokens: list[Token] = []
    line = 1
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise MalformedSchemaError(
                {f"{filename}:{line}": [f"Unexpected character {text[pos]!r}"]},
                source=filename,
            )
        kind = match.lastgroup or ""
        value = match.group()
        if kind not in ("ws", "comment"):
            tokens.append(Token(kind, value, line))
        line += value.count("\n")
        pos = match.end()
    return tokens


class _Parser:
    def __init__(self, filename: str, tokens: list[Token]) -> None:
        self.filename = filename
        self.tokens = tokens
        self.pos = 0

    # -- token helpers --------------------------------------------------------

    def error(self, message: str, token: Token | None = None) -> MalformedSchemaError:
        if token is None:
            token = self.peek()
        line = token.line if token else (self.tokens[-1].line if self.tokens else 1)
        return MalformedSchemaError({f"{self.filename}:{line}": [message]}, source=self.filename)

    def peek(self, offset: int = 0) -> Token | None:
        i = self.pos + offset
        return self.tokens[i] if i < len(self.tokens) else None

    def next(self) -> Token:
        token = self.peek()
        if token is None:
            raise self.error("Unexpected end of input")
        self.pos += 1
        return token

    def at(self, value: str) -> bool:
        token = self.peek()
        return token is not None and token.kind != "string" and token.value == value

    def accept(self, value: str) -> bool:
        if self.at(value):
            self.pos += 1
            return True
        return False

    def expect(self, value: str) -> Token:
        token = self.next()
        if token.kind == "string" or token.value != value:
            raise self.error(f"Expected {value!r}, got {token.value!r}", token)
        return token

    def expect_kind(self, kind: str, what: str) -> Token:
        token = self.next()
        if token.kind != kind:
            raise self.error(f"Expected {what}, got {token.value!r}", token)
        return token

    def expect_name(self) -> Token:
        token = self.expect_kind("ident", "a name")
        if "." in token.value:
            raise self.error(f"Expected a simple name, got {token.value!r}", token)
        return token

    def expect_int(self) -> int:
        token = self.expect_kind("number", "an integer")
        try:
            return _parse_int(token.value)
        except ValueError:
            raise self.error(f"Expected an integer, got {token.value!r}", token) from None

    def skip_statement(self) -> None:
        depth = 0
        while True:
            token = self.next()
            if token.kind == "string":
                continue
            if token.value in ("{", "[", "("):
                depth += 1
            elif token.value in ("}", "]", ")"):
                depth -= 1
            elif token.value == ";" and depth <= 0:
                return

    def skip_block(self) -> None:
        while not self.accept("{"):
            self.next()
        depth = 1
        while depth:
            token = self.next()
            if token.kind == "string":
                continue
            if token.value == "{":
                depth += 1
            elif token.value == "}":
                depth -= 1

    def build(self, model: type[M], token: Token, **values: Any) -> M:
        try:
            return model(**values)
        except PydanticValidationError as e:
            messages = []
            for err in e.errors():
                msg = format_pydantic_error(err)
                messages.append(f"{build_error_path(err['loc'])}: {msg}" if err.get("loc") else msg)
            raise MalformedSchemaError({f"{self.filename}:{token.line}": messages}, source=self.filename) from e

    # -- grammar --------------------------------------------------------------

    def parse_file(self) -> FileDescriptor:
        package: str | None = None
        dependencies: list[str] = []
        messages: list[MessageDescriptor] = []
        enums: list[EnumDescriptor] = []

        while self.pos < len(self.tokens):
            token = self.tokens[self.pos]
            if self.accept(";"):
                continue
            if token.value in ("syntax", "edition"):
                self.next()
                self.expect("=")
                self.expect_kind("string", "a string")
                self.expect(";")
            elif token.value == "package":
                self.next()
                if package is not None:
                    raise self.error("Multiple package declarations", token)
                package = self.expect_kind("ident", "a package name").value.lstrip(".")
                self.expect(";")
            elif token.value == "import":
                self.next()
                if self.at("public") or self.at("weak"):
                    self.next()
                dependencies.append(self.expect_kind("string", "an import path").value[1:-1])
                self.expect(";")
            elif token.value == "message":
                messages.append(self.parse_message())
            elif token.value == "enum":
                enums.append(self.parse_enum())
            elif token.value in _SKIPPED_STATEMENTS:
                self.skip_statement()
            elif token.value in _SKIPPED_BLOCKS:
                self.skip_block()
            else:
                raise self.error(f"Unexpected {token.value!r}", token)

        first = self.tokens[0] if self.tokens else Token("ident", "", 1)
        return self.build(
            FileDescriptor,
            first,
            name=self.filename,
            package=package or "",
            dependencies=dependencies,
            messages=messages,
            enums=enums,
        )

    def parse_message(self) -> MessageDescriptor:
        start = self.expect("message")
        name = self.expect_name().value
        self.expect("{")

        fields: list[FieldDescriptor] = []
        nested: list[MessageDescriptor] = []
        enums: list[EnumDescriptor] = []

        while not self.accept("}"):
            token = self.peek()
            if token is None:
                raise self.error(f"Unterminated message {name!r}", start)
            if self.accept(";"):
                continue
            if token.value == "message" and self._is_declaration():
                nested.append(self.parse_message())
            elif token.value == "enum" and self._is_declaration():
                enums.append(self.parse_enum())
            elif token.value == "oneof" and self._is_declaration():
                fields.extend(self.parse_oneof())
            elif token.value in _SKIPPED_STATEMENTS:
                self.skip_statement()
            elif token.value in _SKIPPED_BLOCKS:
                self.skip_block()
            else:
                fields.append(self.parse_field())

        return self.build(
            MessageDescriptor,
            start,
            name=name,
            fields=fields,
            nested_messages=nested,
            enums=enums,
        )

    def parse_oneof(self) -> list[FieldDescriptor]:
        self.expect("oneof")
        self.expect_name()
        self.expect("{")
        fields: list[FieldDescriptor] = []
        while not self.accept("}"):
            if self.accept(";"):
                continue
            if self.at("option"):
                self.skip_statement()
                continue
            fields.append(self.parse_field())
        return fields

    def parse_field(self) -> FieldDescriptor:
        start = self.peek()
        label = FieldLabel.OPTIONAL
        if start is not None and start.kind == "ident" and start.value in _LABELS:
            label = _LABELS[self.next().value]

        type_token = self.expect_kind("ident", "a field type")
        type_name = type_token.value
        if type_name == "map" and self.at("<"):
            self.expect("<")
            key = self.expect_kind("ident", "a map key type").value
            self.expect(",")
            value = self.expect_kind("ident", "a map value type").value
            self.expect(">")
            type_name = f"map<{key}, {value}>"
            label = FieldLabel.REPEATED

        name = self.expect_name().value
        self.expect("=")
        number = self.expect_int()
        if self.at("["):
            self._skip_field_options()
        self.expect(";")

        return self.build(
            FieldDescriptor,
            type_token,
            name=name,
            number=number,
            type_name=type_name,
            label=label,
        )

    def parse_enum(self) -> EnumDescriptor:
        start = self.expect("enum")
        name = self.expect_name().value
        self.expect("{")

        values: list[EnumValueDescriptor] = []
        while not self.accept("}"):
            token = self.peek()
            if token is None:
                raise self.error(f"Unterminated enum {name!r}", start)
            if self.accept(";"):
                continue
            if token.value in _SKIPPED_STATEMENTS:
                self.skip_statement()
                continue
            value_token = self.expect_name()
            self.expect("=")
            number = self.expect_int()
            if self.at("["):
                self._skip_field_options()
            self.expect(";")
            values.append(self.build(EnumValueDescriptor, value_token, name=value_token.value, number=number))

        return self.build(EnumDescriptor, start, name=name, values=values)

    def _is_declaration(self) -> bool:
        # `message Foo {` declares a type; `message foo = 1;` is a field of type `message`.
        following = self.peek(2)
        return following is not None and following.value == "{"

    def _skip_field_options(self) -> None:
        self.expect("[")
        depth = 1
        while depth:
            token = self.next()
            if token.kind == "string":
                continue
            if token.value == "[":
                depth += 1
            elif token.value == "]":
                depth -= 1


def parse_proto(filename: str, text: str) -> FileDescriptor:
    """
    Parse proto source text into a FileDescriptor.

    Args:
        filename: Name recorded on the descriptor and used in error keys
        text: Proto source

    Returns:
        The parsed FileDescriptor

    Raises:
        MalformedSchemaError: On syntax errors, keyed by ``"<filename>:<line>"``
    """
    return _Parser(filename, tokenize(filename, text)).parse_file()
