"""
docchat — upload documents, index them for semantic search, and chat with
an assistant whose answers are grounded in the indexed content.

Sub-packages
------------
- :mod:`docchat.ingestion` — extraction, chunking, embedding and storage.
- :mod:`docchat.retrieval` — vector store abstraction and query pipeline.
- :mod:`docchat.generation` — chat-model client and prompt construction.
- :mod:`docchat.serving` — FastAPI application.
"""

__version__ = "0.1.0"
