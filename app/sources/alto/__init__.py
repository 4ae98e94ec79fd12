"""
Alto (Vebra) data source module.

Provides the student-lettings import:
- Token exchange and caching (token_manager)
- XML-over-HTTP client (client)
- XML decoding and dotted-path field access (xml_tree)
- Student-letting / availability checks (classifier)
- Vendor record -> normalized listing mapping (mapper)
- The sequential fetch/filter/map pipeline (importer)
"""

__all__ = ["client", "classifier", "importer", "mapper", "models", "token_manager", "xml_tree"]
