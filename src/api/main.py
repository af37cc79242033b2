from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routes.ingest import router as ingest_router
from src.api.routes.lessons import router as lessons_router
from src.api.routes.query import router as query_router

app = FastAPI(
    title="Lesson Transcript RAG API",
    description="Question answering over time-coded lesson transcripts",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:8501",
    ],
    allow_origin_regex=r"http://localhost:\d+",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ingest_router)
app.include_router(query_router)
app.include_router(lessons_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
