"""Web layer — FastAPI server exposing planning sessions over HTTP."""
