"""
Serving — FastAPI application exposing ingestion, listing and chat.
"""
