# Corpus loading for Cube Brain.
# Turns the raw brain.json document into a validated, read-only Brain.
# Pure transform: the caller supplies the bytes.

import json
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from cubebrain.errors import CorpusParseError


def _as_string_list(value):
    """Accept null and a bare string where a list of strings is expected."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return value


def _drop_blank(values) -> tuple:
    # A blank trigger or keyword would match every prompt as a substring.
    return tuple(v.strip() for v in values if v.strip())


class Intent(BaseModel):
    """One conversational topic. Every field is optional and defaults to empty."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    triggers: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    examples: tuple[str, ...] = ()
    responses: tuple[str, ...] = ()

    @field_validator("triggers", "keywords", "examples", "responses", mode="before")
    @classmethod
    def _coerce_sequences(cls, value):
        return _as_string_list(value)

    @field_validator("triggers", "keywords", mode="after")
    @classmethod
    def _strip_phrases(cls, value):
        return _drop_blank(value)

    @property
    def training_lines(self) -> tuple:
        """Examples train the model; canned responses only stand in when there are none."""
        return self.examples or self.responses


class Brain(BaseModel):
    """The whole knowledge base: named intents plus category-grouped global keywords."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    # Read-only proxies: one published Brain is shared by every request.
    intents: Mapping[str, Intent] = Field(default_factory=dict, validate_default=True)
    global_keywords: Mapping[str, tuple[str, ...]] = Field(
        default_factory=dict, alias="keywords_global", validate_default=True
    )

    @field_validator("intents", mode="before")
    @classmethod
    def _fill_intents(cls, value):
        if value is None:
            return {}
        if isinstance(value, dict):
            return {name: ({} if entry is None else entry) for name, entry in value.items()}
        return value

    @field_validator("intents", mode="after")
    @classmethod
    def _check_intent_names(cls, value):
        for name in value:
            if not name.strip():
                raise ValueError("intent names must be non-empty")
        return MappingProxyType(dict(value))

    @field_validator("global_keywords", mode="before")
    @classmethod
    def _fill_global_keywords(cls, value):
        if value is None:
            return {}
        if isinstance(value, dict):
            return {category: _as_string_list(words) for category, words in value.items()}
        return value

    @field_validator("global_keywords", mode="after")
    @classmethod
    def _strip_global_keywords(cls, value):
        return MappingProxyType(
            {category: _drop_blank(words) for category, words in value.items()}
        )

    @property
    def intent_names(self) -> list:
        """Intent names in the fixed (lexicographic) order used for scoring and training."""
        return sorted(self.intents)

    @property
    def all_global_keywords(self) -> list:
        """Every global keyword, category by category in document order."""
        return [word for words in self.global_keywords.values() for word in words]


def _describe_validation_error(err: ValidationError) -> str:
    first = err.errors()[0]
    where = ".".join(str(part) for part in first["loc"]) or "<root>"
    return f"{err.error_count()} problem(s), first at {where}: {first['msg']}"


def load_corpus(raw) -> Brain:
    """
    Parse a knowledge base document into a Brain.

    raw may be bytes (decoded as UTF-8, BOM tolerated) or an already-decoded str.
    The document is either the brain object itself or {"brain": {...}}.

    Missing or null intents / keywords_global / per-intent fields become empty
    collections; a structurally valid but empty document yields an empty Brain.
    Anything that is not JSON, or whose shape contradicts the schema (e.g.
    intents given as a list, numbers inside a keyword list), raises
    CorpusParseError.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            text = bytes(raw).decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise CorpusParseError(f"corpus is not UTF-8 text: {e}") from e
    else:
        text = raw

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise CorpusParseError(
            f"corpus is not valid JSON: {e.msg} (line {e.lineno}, column {e.colno})"
        ) from e

    if isinstance(data, dict) and "brain" in data:
        data = {} if data["brain"] is None else data["brain"]

    if not isinstance(data, dict):
        raise CorpusParseError(f"corpus root must be an object, got {type(data).__name__}")

    try:
        return Brain.model_validate(data)
    except ValidationError as e:
        raise CorpusParseError(
            f"corpus does not match the brain schema: {_describe_validation_error(e)}"
        ) from e
