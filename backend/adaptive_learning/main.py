import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Annotated, List, Optional

from adaptive_learning.config import get_settings
from adaptive_learning.errors import (
    FileValidationError,
    NoConceptsAvailable,
    OperationFailed,
    SchemaViolation,
    SessionNotFound,
    UploadNotFound,
)
from adaptive_learning.models.concepts import LearningPathway
from adaptive_learning.models.content import AnalysisResult
from adaptive_learning.models.questions import AnswerEvaluation, Question
from adaptive_learning.models.requests import (
    AdaptiveQuestionsRequest,
    AnswerEvaluationRequest,
    AnswerRequest,
    AssessmentStateResponse,
    AudioScriptRequest,
    ConceptExtractionRequest,
    ConceptExtractionResponse,
    ConfidenceRequest,
    CreateAssessmentRequest,
    ExplanationRequest,
    FileAnalysisResponse,
    HintRequest,
    PathwayRequest,
    QuestionGenerationRequest,
    SelectQuestionRequest,
    StudyPlanRequest,
)
from adaptive_learning.models.tutoring import (
    AdaptiveHints,
    AudioScript,
    LearningAnalysis,
    LearningData,
    PersonalizedExplanation,
    StudyPlan,
)
from adaptive_learning.services.assessment.manager import AssessmentManager
from adaptive_learning.services.assessment.scheduler import SessionRunner
from adaptive_learning.services.concepts.extractor import ConceptExtractionService
from adaptive_learning.services.concepts.pathway import create_learning_pathway
from adaptive_learning.services.content.file_analysis import FileAnalysisService
from adaptive_learning.services.llm import LLMService
from adaptive_learning.services.questions.generator import QuestionGenerationService
from adaptive_learning.services.storage.session_store import (
    SessionStore,
    create_session_store,
)
from adaptive_learning.services.tutoring.adaptive_learning import (
    AdaptiveLearningService,
)
from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ANALYSIS_NAMESPACE = "analysis"
PATHWAY_NAMESPACE = "pathway"


@dataclass
class Services:
    store: SessionStore
    llm: Optional[LLMService]
    files: FileAnalysisService
    concepts: ConceptExtractionService
    questions: QuestionGenerationService
    tutor: AdaptiveLearningService
    assessments: AssessmentManager


def build_services() -> Services:
    settings = get_settings()
    store = create_session_store(settings.mongodb_uri, settings.mongodb_database)
    llm = LLMService(
        settings.openai_api_key,
        settings.openai_model,
        temperature=settings.llm_temperature,
        max_attempts=settings.llm_max_attempts,
    )
    questions = QuestionGenerationService(llm)
    return Services(
        store=store,
        llm=llm,
        files=FileAnalysisService(llm, max_file_size=settings.max_upload_bytes),
        concepts=ConceptExtractionService(llm),
        questions=questions,
        tutor=AdaptiveLearningService(llm),
        assessments=AssessmentManager(
            questions,
            store,
            autosave_interval=settings.autosave_interval_seconds,
            saved_display_seconds=settings.saved_display_seconds,
            concept_limit=settings.assessment_concept_limit,
            questions_per_concept=settings.questions_per_concept,
            idle_timeout=settings.session_idle_timeout_seconds,
            sweep_interval=settings.session_sweep_interval_seconds,
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    try:
        services = build_services()
        await services.store.init_indexes()
        app.state.services = services
        logger.info("Successfully initialized services")
    except Exception as e:
        logger.error(f"Failed to initialize: {str(e)}")
        raise
    yield
    # Stop every session timer before the loop goes away
    await services.assessments.shutdown()
    if services.llm is not None:
        await services.llm.close()
    await services.store.close()


app = FastAPI(
    title="Adaptive Learning API",
    description="Document analysis, adaptive assessments and personalized tutoring",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Dependencies
def get_services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized")
    return services


ServicesDep = Annotated[Services, Depends(get_services)]


# Error mapping
@app.exception_handler(FileValidationError)
async def file_validation_error_handler(request: Request, exc: FileValidationError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(OperationFailed)
async def operation_failed_handler(request: Request, exc: OperationFailed):
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(SchemaViolation)
async def schema_violation_handler(request: Request, exc: SchemaViolation):
    logger.error(f"Unhandled schema violation: {str(exc)}")
    return JSONResponse(status_code=502, content={"detail": "Invalid AI response"})


@app.exception_handler(SessionNotFound)
async def session_not_found_handler(request: Request, exc: SessionNotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(UploadNotFound)
async def upload_not_found_handler(request: Request, exc: UploadNotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(NoConceptsAvailable)
async def no_concepts_handler(request: Request, exc: NoConceptsAvailable):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# Content and concepts
@app.post("/api/files/analyze", response_model=FileAnalysisResponse)
async def analyze_file(services: ServicesDep, file: UploadFile = File(...)):
    """Validate an upload and analyze its content."""
    if file.size is not None:
        services.files.validate_file(file.filename, file.content_type, file.size)
    # Read one byte past the limit so an unsized upload still fails validation
    data = await file.read(services.files.max_file_size + 1)
    analysis = await services.files.analyze_file(
        file.filename, file.content_type, data
    )

    upload_id = uuid.uuid4().hex
    await services.store.put(
        ANALYSIS_NAMESPACE, upload_id, analysis.model_dump(mode="json")
    )
    return FileAnalysisResponse(upload_id=upload_id, analysis=analysis)


@app.post("/api/concepts/extract", response_model=ConceptExtractionResponse)
async def extract_concepts(request: ConceptExtractionRequest, services: ServicesDep):
    """Extract concepts from an analysis and order them into a pathway."""
    concepts = await services.concepts.extract_concepts(request.analysis)
    pathway = create_learning_pathway(concepts)

    if request.upload_id:
        await services.assessments.store_concepts(request.upload_id, concepts)
        await services.store.put(
            PATHWAY_NAMESPACE, request.upload_id, pathway.model_dump(mode="json")
        )
    return ConceptExtractionResponse(concepts=concepts, learning_pathway=pathway)


@app.get("/api/uploads/{upload_id}/analysis", response_model=AnalysisResult)
async def get_upload_analysis(upload_id: str, services: ServicesDep):
    doc = await services.store.get(ANALYSIS_NAMESPACE, upload_id)
    if doc is None:
        raise UploadNotFound(upload_id)
    return AnalysisResult.model_validate(doc)


@app.get("/api/uploads/{upload_id}/pathway", response_model=LearningPathway)
async def get_upload_pathway(upload_id: str, services: ServicesDep):
    doc = await services.store.get(PATHWAY_NAMESPACE, upload_id)
    if doc is None:
        raise UploadNotFound(upload_id)
    return LearningPathway.model_validate(doc)


@app.post("/api/pathway", response_model=LearningPathway)
async def build_pathway(request: PathwayRequest):
    return create_learning_pathway(request.concepts)


# Questions
@app.post("/api/questions/generate", response_model=List[Question])
async def generate_questions(request: QuestionGenerationRequest, services: ServicesDep):
    return await services.questions.generate_questions_for_concept(
        request.concept, request.options
    )


@app.post("/api/questions/adaptive", response_model=List[Question])
async def generate_adaptive_questions(
    request: AdaptiveQuestionsRequest, services: ServicesDep
):
    return await services.questions.generate_adaptive_questions(
        request.concepts, request.performance
    )


@app.post("/api/answers/evaluate", response_model=AnswerEvaluation)
async def evaluate_answer(request: AnswerEvaluationRequest, services: ServicesDep):
    return await services.questions.evaluate_answer(
        request.question, request.user_answer
    )


# Assessment sessions
def _state(
    runner: SessionRunner, accepted: bool = True, with_results: bool = False
) -> AssessmentStateResponse:
    return AssessmentStateResponse(
        session=runner.session.snapshot(),
        accepted=accepted,
        results=runner.session.results() if with_results else None,
    )


@app.post("/api/assessments", response_model=AssessmentStateResponse)
async def create_assessment(request: CreateAssessmentRequest, services: ServicesDep):
    concepts = request.concepts
    if not concepts and request.upload_id:
        concepts = await services.assessments.load_concepts(request.upload_id)

    runner = await services.assessments.create_session(
        concepts, request.performance, adaptive=request.adaptive
    )
    return _state(runner)


@app.get("/api/assessments/{session_id}", response_model=AssessmentStateResponse)
async def get_assessment(session_id: str, services: ServicesDep):
    return _state(services.assessments.get(session_id))


@app.post(
    "/api/assessments/{session_id}/answer", response_model=AssessmentStateResponse
)
async def answer_question(session_id: str, request: AnswerRequest, services: ServicesDep):
    runner = services.assessments.get(session_id)
    runner.session.record_answer(request.answer)
    return _state(runner)


@app.post(
    "/api/assessments/{session_id}/confidence", response_model=AssessmentStateResponse
)
async def set_confidence(
    session_id: str, request: ConfidenceRequest, services: ServicesDep
):
    runner = services.assessments.get(session_id)
    runner.session.set_confidence(request.level)
    return _state(runner)


@app.post("/api/assessments/{session_id}/next", response_model=AssessmentStateResponse)
async def next_question(session_id: str, services: ServicesDep):
    runner = services.assessments.get(session_id)
    return _state(runner, accepted=runner.session.next())


@app.post(
    "/api/assessments/{session_id}/previous", response_model=AssessmentStateResponse
)
async def previous_question(session_id: str, services: ServicesDep):
    runner = services.assessments.get(session_id)
    return _state(runner, accepted=runner.session.previous())


@app.post(
    "/api/assessments/{session_id}/select", response_model=AssessmentStateResponse
)
async def select_question(
    session_id: str, request: SelectQuestionRequest, services: ServicesDep
):
    runner = services.assessments.get(session_id)
    return _state(runner, accepted=runner.session.select_question(request.question_id))


@app.post("/api/assessments/{session_id}/pause", response_model=AssessmentStateResponse)
async def toggle_pause(session_id: str, services: ServicesDep):
    runner = services.assessments.get(session_id)
    runner.session.toggle_pause()
    return _state(runner)


@app.post("/api/assessments/{session_id}/save", response_model=AssessmentStateResponse)
async def save_assessment(session_id: str, services: ServicesDep):
    runner = services.assessments.get(session_id)
    await runner.save()
    return _state(runner)


@app.post(
    "/api/assessments/{session_id}/submit", response_model=AssessmentStateResponse
)
async def submit_assessment(session_id: str, services: ServicesDep):
    runner = services.assessments.get(session_id)
    results = runner.session.submit()
    return AssessmentStateResponse(
        session=runner.session.snapshot(),
        accepted=results is not None,
        results=results,
    )


@app.post(
    "/api/assessments/{session_id}/retake", response_model=AssessmentStateResponse
)
async def retake_assessment(session_id: str, services: ServicesDep):
    runner = services.assessments.get(session_id)
    runner.session.retake()
    return _state(runner)


@app.get(
    "/api/assessments/{session_id}/results", response_model=AssessmentStateResponse
)
async def assessment_results(session_id: str, services: ServicesDep):
    return _state(services.assessments.get(session_id), with_results=True)


@app.delete("/api/assessments/{session_id}")
async def close_assessment(session_id: str, services: ServicesDep):
    await services.assessments.close_session(session_id)
    return {"status": "closed"}


# Tutoring
@app.post("/api/explanations", response_model=PersonalizedExplanation)
async def personalized_explanation(request: ExplanationRequest, services: ServicesDep):
    return await services.tutor.generate_personalized_explanation(
        request.concept, request.context
    )


@app.post("/api/audio-script", response_model=AudioScript)
async def audio_script(request: AudioScriptRequest, services: ServicesDep):
    return await services.tutor.create_audio_script(
        request.explanation, request.voice_settings
    )


@app.post("/api/learning-patterns", response_model=LearningAnalysis)
async def learning_patterns(request: LearningData, services: ServicesDep):
    return await services.tutor.analyze_learning_patterns(request)


@app.post("/api/hints", response_model=AdaptiveHints)
async def adaptive_hints(request: HintRequest, services: ServicesDep):
    return await services.tutor.generate_adaptive_hints(
        request.question, request.context
    )


@app.post("/api/study-plan", response_model=StudyPlan)
async def study_plan(request: StudyPlanRequest, services: ServicesDep):
    return await services.tutor.create_personalized_study_plan(
        request.profile, request.concepts
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
