"""
CIN Census Document Capability

Thin layer over xml.etree.ElementTree: parsing with synthetic identities,
path selection, location resolution and serialization.
"""
from __future__ import annotations

from .source import ROOT_TAG, SourceDocument
from .writer import XML_DECLARATION, write_document

__all__ = [
    "ROOT_TAG",
    "SourceDocument",
    "XML_DECLARATION",
    "write_document",
]
