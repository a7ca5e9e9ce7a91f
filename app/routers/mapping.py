from fastapi import APIRouter, Depends

from app.models.response import MappingProposalData, MappingProposalEnvelope, ProposeMappingRequest
from app.routers.dependencies import get_current_user_id
from app.services.mapping import build_items, has_requirements, propose_mapping
from app.services.repository import get_application_by_id, list_project_bullets
from app.utils.exceptions import ExceptionContext, NotFoundError, PrerequisiteError, ProposalError
from app.utils.logging_config import get_logger, log_api_call, PerformanceMonitor

router = APIRouter()
logger = get_logger(__name__)


@router.post("/propose", response_model=MappingProposalEnvelope)
@log_api_call("propose_mapping")
async def propose(payload: ProposeMappingRequest, user_id: str = Depends(get_current_user_id)):
    """Suggest evidence bullets for each extracted requirement of an application"""
    application_id = payload.application_id

    with ExceptionContext("propose_mapping", logger, wrap_as=ProposalError,
                          user_id=user_id, application_id=application_id):
        application = await get_application_by_id(user_id, application_id)
        if application is None:
            raise NotFoundError("Application not found", resource="application", resource_id=application_id)

        extracted = application.extracted_requirements
        if not has_requirements(extracted):
            raise PrerequisiteError(
                "Application must have extracted requirements before mapping can be proposed",
                error_code="REQUIREMENTS_REQUIRED",
            )

        # All bullets across every project
        bullets = await list_project_bullets(user_id)
        if not bullets:
            raise PrerequisiteError(
                "User must have project bullets before mapping can be proposed",
                error_code="BULLETS_REQUIRED",
            )

        items = build_items(extracted)
        with PerformanceMonitor(f"propose_mapping[{application_id}]", logger, threshold_ms=500):
            proposal = propose_mapping(items, bullets)

    logger.info(f"Proposed mapping for application {application_id}: {len(proposal)} items, {len(bullets)} bullets")
    return MappingProposalEnvelope(data=MappingProposalData(proposal=proposal), error=None)
