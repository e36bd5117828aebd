"""
run with:
    uvicorn docfact.main:app --reload --port 8000
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docfact.api.endpoints import documents
from docfact.observability.logger import setup_logging

setup_logging()

app = FastAPI(
    title="Document Fact-Checker API",
    description="Extracts verifiable claims from documents and verifies them against web sources",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(documents.router, tags=["documents"])


@app.get("/")
async def root():
    return {"message": "Document Fact-Checker API", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
