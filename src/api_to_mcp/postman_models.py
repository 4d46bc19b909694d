"""
Typed view of a Postman Collection v2.x document.

The models are tolerant: unknown keys are ignored and the shorthand forms
Postman allows (a request or URL given as a plain string, headers given as a
string) are normalized.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import EmptyCollectionError, MalformedSourceError


def _as_list(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return []
    return value


class KeyValue(BaseModel):
    """A header, query parameter or URL variable."""

    key: str = ""
    value: Any = None
    description: Any = None
    disabled: bool = False

    @field_validator("key", mode="before")
    @classmethod
    def _key_as_str(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("disabled", mode="before")
    @classmethod
    def _disabled_as_bool(cls, value: Any) -> bool:
        return bool(value)

    @property
    def text(self) -> str:
        return "" if self.value is None else str(self.value)


class Variable(KeyValue):
    """A collection-level variable."""

    id: Optional[str] = None


class Info(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    schema_: str = Field(default="", alias="schema")
    description: Any = None
    postman_id: Optional[str] = Field(default=None, alias="_postman_id")

    @property
    def description_text(self) -> str:
        # v2.1 allows a {"content": ..., "type": ...} description object
        if isinstance(self.description, dict):
            return str(self.description.get("content") or "")
        return self.description or ""


class Url(BaseModel):
    raw: str = ""
    protocol: Optional[str] = None
    host: List[str] = Field(default_factory=list)
    path: List[str] = Field(default_factory=list)
    query: List[KeyValue] = Field(default_factory=list)
    variable: List[KeyValue] = Field(default_factory=list)

    @field_validator("host", mode="before")
    @classmethod
    def _split_host(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [part for part in value.split(".") if part]
        return _as_list(value)

    @field_validator("path", mode="before")
    @classmethod
    def _split_path(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [segment for segment in value.split("/") if segment]
        return _as_list(value)

    @field_validator("query", "variable", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return _as_list(value)


class RawOptions(BaseModel):
    language: str = ""


class BodyOptions(BaseModel):
    raw: Optional[RawOptions] = None


class Body(BaseModel):
    mode: str = ""
    raw: str = ""
    options: Optional[BodyOptions] = None

    @field_validator("mode", "raw", mode="before")
    @classmethod
    def _none_as_blank(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def language(self) -> str:
        if self.options and self.options.raw:
            return self.options.raw.language
        return ""


class Request(BaseModel):
    method: str = "GET"
    header: List[KeyValue] = Field(default_factory=list)
    body: Optional[Body] = None
    url: Url = Field(default_factory=Url)
    description: Any = None

    @field_validator("url", mode="before")
    @classmethod
    def _url_from_string(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, str):
            return {"raw": value}
        return value

    @field_validator("header", mode="before")
    @classmethod
    def _headers(cls, value: Any) -> Any:
        return _as_list(value)

    @field_validator("method", mode="before")
    @classmethod
    def _method_upper(cls, value: Any) -> str:
        return str(value or "GET").upper()

    def header_value(self, name: str) -> Optional[str]:
        for header in self.header:
            if not header.disabled and header.key.lower() == name.lower():
                return header.text
        return None


class Response(BaseModel):
    name: str = ""
    status: str = ""
    code: Optional[int] = None
    header: List[KeyValue] = Field(default_factory=list)
    body: Optional[str] = None

    @field_validator("header", mode="before")
    @classmethod
    def _headers(cls, value: Any) -> Any:
        return _as_list(value)


class Event(BaseModel):
    """Pre-request and test scripts. Accepted and ignored."""

    listen: str = ""
    script: Optional[Dict[str, Any]] = None


class Item(BaseModel):
    """A request, or a folder when ``item`` is present."""

    name: str = ""
    request: Optional[Request] = None
    response: List[Response] = Field(default_factory=list)
    item: List["Item"] = Field(default_factory=list)

    @field_validator("request", mode="before")
    @classmethod
    def _request_from_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"url": value}
        return value

    @field_validator("response", "item", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return _as_list(value)

    @property
    def is_folder(self) -> bool:
        return len(self.item) > 0


Item.model_rebuild()


class Collection(BaseModel):
    info: Info = Field(default_factory=Info)
    item: List[Item] = Field(default_factory=list)
    event: List[Event] = Field(default_factory=list)
    variable: List[Variable] = Field(default_factory=list)

    @field_validator("item", "event", "variable", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return _as_list(value)

    def variables(self) -> Dict[str, str]:
        return {
            var.key or var.id or "": var.text
            for var in self.variable
            if var.key or var.id
        }


def parse_collection(data: Optional[Any]) -> Collection:
    """Decode a collection, unwrapping the ``{"collection": ...}`` API envelope.

    Raises:
        EmptyCollectionError: If no collection data was given
        MalformedSourceError: If the data does not have the shape of a collection
    """
    if isinstance(data, Collection):
        return data
    if data is None:
        raise EmptyCollectionError("no postman collection found")
    if not isinstance(data, dict):
        raise MalformedSourceError("a postman collection must be a JSON object")
    if isinstance(data.get("collection"), dict):
        data = data["collection"]
    try:
        return Collection.model_validate(data)
    except ValidationError as e:
        raise MalformedSourceError(f"invalid postman collection: {e}") from e
