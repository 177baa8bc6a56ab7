from fastapi import APIRouter, Depends, File as FastAPIFile, HTTPException, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.models.database import get_db
from app.schemas.share import ShareCreated, ShareRead
from app.services.sharing import (
    ShareError,
    ShareService,
    ShareValidationError,
    content_disposition,
    get_share_service,
)

router = APIRouter(prefix="/api/shares", tags=["shares"])


def _http_error(exc: ShareError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


@router.post("", response_model=ShareCreated, status_code=201)
async def create_share(
    upload: UploadFile | None = FastAPIFile(None),
    db: Session = Depends(get_db),
    service: ShareService = Depends(get_share_service),
):
    try:
        if upload is None or not upload.filename:
            raise ShareValidationError("Please select a file first")
        content = await upload.read()
        record = service.create_share(
            db,
            data=content,
            filename=upload.filename,
            content_type=upload.content_type,
        )
    except ShareError as exc:
        raise _http_error(exc) from exc

    return ShareCreated(
        **ShareRead.model_validate(record).model_dump(),
        share_link=service.share_link(record),
        qr_url=f"/qr.png?code={record.share_code}",
    )


@router.get("/{code}", response_model=ShareRead)
def get_share(
    code: str,
    db: Session = Depends(get_db),
    service: ShareService = Depends(get_share_service),
):
    try:
        return service.lookup(db, code)
    except ShareError as exc:
        raise _http_error(exc) from exc


@router.get("/{code}/content")
def get_share_content(
    code: str,
    db: Session = Depends(get_db),
    service: ShareService = Depends(get_share_service),
):
    try:
        result = service.download(db, code)
    except ShareError as exc:
        raise _http_error(exc) from exc

    return StreamingResponse(
        result.stream.chunks,
        media_type=result.record.file_type or "application/octet-stream",
        headers={"Content-Disposition": content_disposition(result.record.file_name)},
    )
