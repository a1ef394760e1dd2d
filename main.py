import logging
from typing import Literal, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

import config
import errors
from editor import edit_portfolio
from errors import GenerationFailed
from executor import execute_plan
from generator import PlanGenerator, RemotePlanGenerator
from history import SnapshotDiff, revert, snapshot_diff
from insights import PortfolioEvaluation, RoleDetection, detect_role, evaluate_portfolio
from llm import CompletionClient
from rewriter import rewrite_content
from schemas import AIEditPlan, AIEditResult, EditContext, PortfolioDocument

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="AI Portfolio Editor API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

GENERATION_FAILURE_STATUS = {
    errors.RATE_LIMITED: 429,
    errors.QUOTA_EXHAUSTED: 402,
    errors.TIMEOUT: 504,
    errors.NOT_CONFIGURED: 503,
    errors.INVALID_REQUEST: 400,
}


@app.exception_handler(GenerationFailed)
async def generation_failed_handler(request: Request, exc: GenerationFailed):
    status_code = GENERATION_FAILURE_STATUS.get(exc.reason, 502)
    logger.warning("Generation failed on %s: %s (%s)", request.url.path, exc.message, exc.reason)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.get("/")
def read_root():
    return {"message": "AI Portfolio Editor Backend Running"}


# ---- Dependencies ----

def get_plan_generator():
    generator = RemotePlanGenerator()
    try:
        yield generator
    finally:
        generator.close()


def get_completion_client():
    client = CompletionClient()
    try:
        yield client
    finally:
        client.close()


# ---- API: AI edit plans ----

class PlanRequest(BaseModel):
    instruction: str
    document: PortfolioDocument
    context: EditContext = Field(default_factory=EditContext)


class PlanResponse(BaseModel):
    plan: AIEditPlan


class ApplyRequest(BaseModel):
    plan: AIEditPlan
    document: PortfolioDocument


class EditResponse(BaseModel):
    result: AIEditResult
    document: PortfolioDocument
    diff: SnapshotDiff


@app.post("/api/portfolio/plan", response_model=PlanResponse)
def generate_plan(data: PlanRequest, generator: PlanGenerator = Depends(get_plan_generator)):
    plan = generator.generate(data.instruction, data.document, data.context)
    return PlanResponse(plan=plan)


@app.post("/api/portfolio/apply", response_model=EditResponse)
def apply_plan(data: ApplyRequest):
    document, result = execute_plan(data.plan, data.document)
    return EditResponse(result=result, document=document, diff=snapshot_diff(data.document, document))


@app.post("/api/portfolio/ai-edit", response_model=EditResponse)
def ai_edit(data: PlanRequest, generator: PlanGenerator = Depends(get_plan_generator)):
    document, result = edit_portfolio(data.instruction, data.document, generator, data.context)
    return EditResponse(result=result, document=document, diff=snapshot_diff(data.document, document))


class RevertRequest(BaseModel):
    document: PortfolioDocument
    diff: SnapshotDiff


@app.post("/api/portfolio/revert", response_model=PortfolioDocument)
def revert_edit(data: RevertRequest):
    """Undo an edit using the ``diff`` an earlier edit response returned."""
    return revert(data.document, data.diff)


# ---- API: AI content rewriting ----

class AISuggestRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    command: str
    content: str
    scope: Literal["selection", "section", "portfolio"] = "section"
    section_type: Optional[str] = Field(None, alias="sectionType")
    role: Optional[str] = None


@app.post("/api/suggest")
def ai_suggest(payload: AISuggestRequest, client: CompletionClient = Depends(get_completion_client)):
    edited = rewrite_content(
        payload.command,
        payload.content,
        scope=payload.scope,
        section_type=payload.section_type,
        role=payload.role,
        client=client,
    )
    return {"editedContent": edited, "originalContent": payload.content, "command": payload.command}


# ---- API: role detection and quality scoring ----

class DetectRoleRequest(BaseModel):
    content: str
    source: Literal["resume", "linkedin", "text"] = "text"


@app.post("/api/detect-role", response_model=RoleDetection)
def ai_detect_role(payload: DetectRoleRequest, client: CompletionClient = Depends(get_completion_client)):
    return detect_role(payload.content, payload.source, client=client)


class EvaluateRequest(BaseModel):
    portfolio: PortfolioDocument


@app.post("/api/evaluate", response_model=PortfolioEvaluation)
def ai_evaluate(payload: EvaluateRequest, client: CompletionClient = Depends(get_completion_client)):
    return evaluate_portfolio(payload.portfolio, client=client)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
