from typing import List

from fastapi import APIRouter, Depends

from ..deps import get_storage
from ...data.storage import Storage
from ...schemas.io_models import ContactIn, ContactOut
from ...utils.logger import get_logger
from ...utils.security import mask_pii

logger = get_logger("contact")

router = APIRouter()


@router.post("/contact", status_code=201)
def submit_contact(body: ContactIn, storage: Storage = Depends(get_storage)):
    submission = storage.create_contact_submission(**body.model_dump())
    logger.info(f"[CONTACT] #{submission.id} from {mask_pii(body.email)} consultation={body.is_consultation}")
    return {"message": "Thank you for your message! We'll get back to you soon.", "id": submission.id}


@router.get("/contact", response_model=List[ContactOut])
def list_contacts(storage: Storage = Depends(get_storage)):
    return [ContactOut.model_validate(c) for c in storage.get_contact_submissions()]
