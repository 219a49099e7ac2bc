import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from skillquiz.core.config import AUTO_CREATE_TABLES, CORS_ORIGINS, HOST, LOG_LEVEL, PORT
from skillquiz.core.database import init_db
from skillquiz.core.errors import QuizError
from skillquiz.api.auth import router as auth_router
from skillquiz.api.quizzes import router as quizzes_router
from skillquiz.api.questions import router as questions_router
from skillquiz.api.reports import router as reports_router

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    if AUTO_CREATE_TABLES:
        init_db()
    yield

app = FastAPI(title="Skill Quiz API", version="1.0.0", lifespan=lifespan)
app.add_middleware(CORSMiddleware, allow_origins=CORS_ORIGINS, allow_credentials=True, allow_methods=["*"], allow_headers=["*"])
app.include_router(auth_router, prefix="/v1/auth", tags=["auth"])
app.include_router(quizzes_router, prefix="/v1/quizzes", tags=["quizzes"])
app.include_router(questions_router, prefix="/v1/questions", tags=["questions"])
app.include_router(reports_router, prefix="/v1/reports", tags=["reports"])

@app.exception_handler(QuizError)
async def quiz_error_handler(request: Request, exc: QuizError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

@app.get("/health")
def health(): return {"status": "ok"}

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("skillquiz.main:app", host=HOST, port=PORT, log_level=LOG_LEVEL.lower())
