from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from errors import ApiError

router = APIRouter(prefix="/api/student", tags=["student"])

ACADEMIC_DOMAINS = (
    ".edu", ".edu.au", ".ac.uk", ".edu.cn", ".edu.in", ".ac.in", ".edu.sg",
    ".edu.hk", ".ac.nz", ".edu.br", ".edu.mx", ".ac.jp", ".edu.tw", ".ac.kr",
    ".edu.pl", ".edu.es", ".edu.fr", ".edu.de", ".edu.it", ".ac.za", ".edu.co",
    ".edu.ar", ".edu.pe", ".edu.cl", ".edu.ng", ".edu.pk", ".edu.ph", ".edu.my",
    ".edu.vn", ".edu.eg", ".ac.il",
)


def is_student_email(email: str) -> bool:
    return email.strip().lower().endswith(ACADEMIC_DOMAINS)


class StudentVerifyRequest(BaseModel):
    email: Optional[str] = None


@router.post("/verify")
def verify_student(body: StudentVerifyRequest):
    if not body.email or "@" not in body.email:
        raise ApiError(400, "invalid_email", "Please enter a valid email address.")

    if not is_student_email(body.email):
        raise ApiError(400, "not_student_email", "Please use a university email address (.edu, .ac.uk, etc.)")

    return {"success": True, "eligible": True}
