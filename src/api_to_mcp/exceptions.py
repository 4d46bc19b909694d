class AdapterError(Exception):
    """Base exception for API description conversion errors."""
    pass

class SourceUnavailableError(AdapterError):
    """Raised when a document or collection cannot be loaded or fetched."""
    pass

class MalformedSourceError(AdapterError):
    """Raised when a payload cannot be decoded into the expected shape."""
    pass

class MissingMetadataError(AdapterError):
    """Raised when a source is structurally valid but lacks its info block."""
    pass

class EmptyCollectionError(AdapterError):
    """Raised when a Postman conversion is invoked without collection data."""
    pass

class UnsupportedURLError(AdapterError):
    """Raised when a source reference is neither a usable path nor an http(s) URL."""
    pass
