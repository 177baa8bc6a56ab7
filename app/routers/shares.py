from fastapi import APIRouter, Depends, File as FastAPIFile, Request, UploadFile
from fastapi.responses import HTMLResponse, Response, StreamingResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models.database import get_db
from app.services.qr import qr_data_uri, render_qr_png
from app.services.share_codes import build_share_link, normalize_share_code
from app.services.sharing import (
    ShareError,
    ShareService,
    ShareValidationError,
    content_disposition,
    get_share_service,
)

router = APIRouter()
templates = Jinja2Templates(directory="app/templates")


def _render(request: Request, status_code: int = 200, **context):
    context.setdefault("active_tab", "upload")
    context.setdefault("code", "")
    return templates.TemplateResponse(
        request,
        "index.html",
        {"expiry_hours": get_settings().share_expiry_hours, **context},
        status_code=status_code,
    )


# --- landing page: Upload / Download tabs ---
@router.get("/", response_class=HTMLResponse)
def home(request: Request, code: str | None = None):
    # a shared link (/?code=...) opens straight on the download tab
    if code:
        return _render(request, active_tab="download", code=normalize_share_code(code))
    return _render(request)


# --- upload a file and get a share link + QR ---
@router.post("/upload", response_class=HTMLResponse)
async def upload_file(
    request: Request,
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
        return _render(request, status_code=exc.status_code, error=exc.message)

    link = service.share_link(record)
    return _render(
        request,
        share=record,
        share_link=link,
        qr_image=qr_data_uri(link),
    )


# --- look up a code; shows metadata, no bytes yet ---
@router.get("/lookup", response_class=HTMLResponse)
def lookup_file(
    request: Request,
    code: str = "",
    db: Session = Depends(get_db),
    service: ShareService = Depends(get_share_service),
):
    try:
        record = service.lookup(db, code)
    except ShareError as exc:
        return _render(
            request,
            status_code=exc.status_code,
            active_tab="download",
            code=code.strip(),
            error=exc.message,
        )
    return _render(request, active_tab="download", code=record.share_code, found=record)


# --- download the bytes ---
@router.get("/download/{code}")
def download_file(
    code: str,
    request: Request,
    db: Session = Depends(get_db),
    service: ShareService = Depends(get_share_service),
):
    try:
        result = service.download(db, code)
    except ShareError as exc:
        return _render(
            request,
            status_code=exc.status_code,
            active_tab="download",
            code=code.strip(),
            error=exc.message,
        )

    headers = {"Content-Disposition": content_disposition(result.record.file_name)}
    if result.stream.content_length is not None:
        headers["Content-Length"] = str(result.stream.content_length)
    return StreamingResponse(
        result.stream.chunks,
        media_type=result.record.file_type or "application/octet-stream",
        headers=headers,
    )


# --- QR image as a downloadable PNG ---
@router.get("/qr.png")
def download_qr(code: str = ""):
    share_code = normalize_share_code(code)
    if not share_code:
        return Response("Please enter a file code", status_code=400, media_type="text/plain")
    link = build_share_link(get_settings().base_url, share_code)
    return Response(
        render_qr_png(link),
        media_type="image/png",
        headers={"Content-Disposition": 'attachment; filename="qr-code.png"'},
    )
