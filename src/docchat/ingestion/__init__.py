"""
Ingestion — turn an uploaded file into vector records.

Extractor → chunker → embedder → vector store, orchestrated one document
at a time by :class:`~docchat.ingestion.pipeline.IngestionPipeline`.
"""
