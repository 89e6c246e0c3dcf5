from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import require_admin

from .mailer import SmtpMailer, get_mailer
from .schemas import ContactAdvancedCreate, ContactCreate, ContactResponse, DispatchSummary
from .service import ContactService, dispatch_outbox

router = APIRouter(prefix="/contact", tags=["Contact"])


def _response(submission) -> ContactResponse:
    return ContactResponse(
        id=submission.id,
        created_at=submission.created_at,
        status=submission.status,
        message=ContactService.acknowledgement(submission),
    )


@router.post("", response_model=ContactResponse)
async def submit_contact(
    payload: ContactCreate,
    background_tasks: BackgroundTasks,
    mailer: SmtpMailer = Depends(get_mailer),
    db: AsyncSession = Depends(get_db),
):
    submission = await ContactService.submit(db, payload)
    background_tasks.add_task(dispatch_outbox, mailer)
    return _response(submission)


@router.post("/advanced", response_model=ContactResponse)
async def submit_advanced_contact(
    payload: ContactAdvancedCreate,
    background_tasks: BackgroundTasks,
    mailer: SmtpMailer = Depends(get_mailer),
    db: AsyncSession = Depends(get_db),
):
    submission = await ContactService.submit(db, payload)
    background_tasks.add_task(dispatch_outbox, mailer)
    return _response(submission)


@router.post(
    "/outbox/dispatch",
    response_model=DispatchSummary,
    dependencies=[Depends(require_admin)],
)
async def dispatch_contact_outbox(
    mailer: SmtpMailer = Depends(get_mailer),
    db: AsyncSession = Depends(get_db),
):
    return await ContactService.dispatch_pending(db, mailer)
