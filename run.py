#!/usr/bin/env python3
# run.py
"""
Development server runner.

Usage:
    python run.py
    PORT=9000 RELOAD=false python run.py
"""
import os

import uvicorn

if __name__ == "__main__":
    port = int(os.getenv("PORT", "8000"))
    print(f"Starting lesson booking API at http://localhost:{port}")
    print(f"API Docs: http://localhost:{port}/docs")

    uvicorn.run(
        "lessonbook.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        reload=os.getenv("RELOAD", "true").lower() in {"1", "true", "yes"},
        log_level="info",
    )
