"""Custom exceptions for sectionwiki."""


class SectionwikiError(Exception):
    """Base exception for sectionwiki operations."""


class StoreError(SectionwikiError):
    """Error inside a document store backend."""


class NotFoundError(StoreError):
    """Requested document or node does not exist."""


class RequestError(StoreError):
    """Error while talking to a remote store."""


class ConversionError(SectionwikiError):
    """Flat and block representations disagree after a round trip."""
