from typing import Dict, Protocol
import json
import yaml


class Serializer(Protocol):
    """Serialize/deserialize a partition (`{key: text}`) for file backends.

    Implementations should be symmetric: `dump` -> bytes, `load` <- bytes.
    """

    extension: str

    def dump(self, items: Dict[str, str]) -> bytes: ...

    def load(self, data: bytes) -> Dict[str, str]: ...


def _check_mapping(data) -> Dict[str, str]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("invalid storage format: expected mapping")
    return {str(k): str(v) for k, v in data.items()}


class JSONSerializer:
    """Default serializer using JSON (text)."""

    extension = "json"

    def dump(self, items: Dict[str, str]) -> bytes:
        return json.dumps(items, indent=2, ensure_ascii=False).encode("utf-8")

    def load(self, data: bytes) -> Dict[str, str]:
        try:
            parsed = json.loads(data.decode("utf-8"))
        except ValueError as e:
            raise ValueError("invalid storage format: parse error") from e
        return _check_mapping(parsed)


class YAMLSerializer:
    """Serializer using YAML (text). Keeps insertion order of the keys."""

    extension = "yaml"

    def dump(self, items: Dict[str, str]) -> bytes:
        return yaml.safe_dump(items, sort_keys=False, allow_unicode=True).encode("utf-8")

    def load(self, data: bytes) -> Dict[str, str]:
        try:
            parsed = yaml.safe_load(data.decode("utf-8"))
        except (yaml.YAMLError, UnicodeDecodeError) as e:
            raise ValueError("invalid storage format: parse error") from e
        return _check_mapping(parsed)


SERIALIZERS = {
    "json": JSONSerializer,
    "yaml": YAMLSerializer,
}


def get_serializer(name: str) -> Serializer:
    try:
        return SERIALIZERS[name.lower()]()
    except KeyError:
        raise ValueError(f"Unknown serializer: {name!r}") from None
