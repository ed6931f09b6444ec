"""
Wiki機能のWebルート
"""

import io

from flask import abort, current_app, flash, redirect, render_template, request, send_file, url_for
from flask_login import current_user, login_required

from domain.wiki.entities import PageInput, UploadedFile
from domain.wiki.exceptions import WikiConflictError, WikiNotFoundError, WikiValidationError
from . import bp
from ..extensions import get_services
from .utils import safe_html


def _home_page_name() -> str:
    return current_app.config["WIKI_HOME_PAGE_NAME"]


def _sidebar_links():
    result = get_services().page_service.all_page_links()
    return result.value if result.ok else ()


def _parse_int(value):
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def _render_form(form, *, page=None, errors=None, status=200):
    home = _home_page_name()
    can_delete = page is not None and not page.is_named(home)
    return (
        render_template(
            "wiki/edit.html",
            form=form,
            page=page,
            errors=errors or {},
            can_delete=can_delete,
            sidebar_links=_sidebar_links(),
        ),
        status,
    )


@bp.route("/")
def index():
    """ホームページを表示"""
    return view_page(_home_page_name())


@bp.route("/new-page")
@login_required
def new_page():
    """新規ページ作成フォーム"""
    services = get_services()
    title = (request.args.get("pageName") or "").strip()
    if not title:
        return redirect(url_for("wiki.index"))

    try:
        name = services.page_service.name_service.from_title(title)
    except ValueError:
        return redirect(url_for("wiki.index"))

    if services.page_service.get_page(name.value).ok:
        return "Page already exists", 400

    form = {"id": "", "name": name.value, "content": ""}
    return _render_form(form)


@bp.route("/edit")
@login_required
def edit_page():
    """ページ編集フォーム"""
    page_name = request.args.get("pageName") or ""
    result = get_services().page_service.get_page(page_name)
    if not result.ok:
        if isinstance(result.error, WikiNotFoundError):
            abort(404)
        abort(500)

    page = result.value
    form = {"id": page.id, "name": page.name, "content": page.content}
    return _render_form(form, page=page)


@bp.route("/attachment")
def download_attachment():
    """添付ファイルのダウンロード"""
    file_id = request.args.get("fileId") or ""
    stored = get_services().page_service.get_file(file_id)
    if stored is None:
        abort(404)

    current_app.logger.info(
        "Attachment %s - %s",
        stored.info.file_id,
        stored.file_name,
        extra={"event": "wiki.attachment.download", "file_id": stored.info.file_id},
    )
    return send_file(
        io.BytesIO(stored.content),
        mimetype=stored.mime_type,
        download_name=stored.file_name,
        as_attachment=False,
    )


@bp.route("/<page_name>")
def view_page(page_name):
    """Wikiページ表示"""
    page_service = get_services().page_service
    result = page_service.get_page(page_name)

    if not result.ok:
        if not isinstance(result.error, WikiNotFoundError):
            abort(500)
        if page_name.casefold() == _home_page_name().casefold():
            return redirect(url_for("wiki.new_page", pageName=_home_page_name()))
        abort(404)

    page = result.value
    return render_template(
        "wiki/page.html",
        page=page,
        content_html=safe_html(page_service.render_page(page)),
        sidebar_links=_sidebar_links(),
    )


@bp.route("/add-page", methods=["POST"])
@login_required
def add_page():
    """ページの作成・更新"""
    page_service = get_services().page_service
    form = {
        "id": request.form.get("id", ""),
        "name": request.form.get("name", ""),
        "content": request.form.get("content", ""),
    }

    upload = request.files.get("attachment")
    attachment = None
    if upload is not None and upload.filename:
        attachment = UploadedFile(
            file_name=upload.filename,
            mime_type=upload.mimetype or "application/octet-stream",
            stream=upload.stream,
        )

    page_input = PageInput(
        id=_parse_int(form["id"]),
        name=form["name"],
        content=form["content"],
        attachment=attachment,
    )

    # 保存前にフォームの入力を検証してエラーを一覧表示する
    existing = None
    if page_input.id is not None:
        found = page_service.get_page_by_id(page_input.id)
        existing = found.value if found.ok else None
    issues = page_service.validator.validate(page_input, existing)
    if issues:
        errors = {issue.field: issue.message for issue in reversed(issues)}
        return _render_form(form, page=existing, errors=errors, status=400)

    result = page_service.save_page(page_input)
    if not result.ok:
        if isinstance(result.error, (WikiValidationError, WikiConflictError)):
            field = getattr(result.error, "field", None) or "name"
            return _render_form(form, page=existing, errors={field: str(result.error)}, status=400)
        current_app.logger.error(
            "Problem in saving page",
            extra={"event": "wiki.page.save_failed", "page_name": form["name"], "user_id": current_user.get_id()},
        )
        abort(500)

    return redirect(url_for("wiki.view_page", page_name=result.value.name))


@bp.route("/delete-page", methods=["POST"])
@login_required
def delete_page():
    """ページ削除"""
    page_id = _parse_int(request.form.get("id"))
    if page_id is None:
        current_app.logger.warning(
            "Unable to delete page because form id is missing",
            extra={"event": "wiki.page.delete_rejected"},
        )
        return redirect(url_for("wiki.index"))

    result = get_services().page_service.delete_page(page_id, _home_page_name())
    if not result.ok:
        flash(str(result.error), "error")

    return redirect(url_for("wiki.view_page", page_name=_home_page_name()))


@bp.route("/delete-attachment", methods=["POST"])
@login_required
def delete_attachment():
    """添付ファイル削除"""
    file_id = request.form.get("id") or ""
    page_id = _parse_int(request.form.get("pageId"))
    if not file_id or page_id is None:
        current_app.logger.warning(
            "Unable to delete attachment because form id or pageId is missing",
            extra={"event": "wiki.attachment.delete_rejected"},
        )
        return redirect(url_for("wiki.index"))

    result = get_services().page_service.delete_attachment(page_id, file_id)
    if not result.ok:
        flash(str(result.error), "error")
        if result.value is not None:
            return redirect(url_for("wiki.view_page", page_name=result.value.name))
        return redirect(url_for("wiki.index"))

    return redirect(url_for("wiki.edit_page", pageName=result.value.name))
