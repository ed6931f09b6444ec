"""
Wiki画面のルートテスト
"""

import io

import pytest


def _services(app):
    return app.extensions["wiki"]


def _create_page(app, name, content="body"):
    from domain.wiki.entities import PageInput

    result = _services(app).page_service.save_page(PageInput(id=None, name=name, content=content))
    assert result.ok
    return result.value


def test_missing_home_page_redirects_to_new_page_form(client):
    response = client.get("/")

    assert response.status_code == 302
    assert "/new-page?pageName=home-page" in response.headers["Location"]


def test_home_page_is_rendered(app, client):
    _create_page(app, "home-page", "# Welcome\n\nhello")

    response = client.get("/")

    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "<h1>Welcome</h1>" in body
    assert "Home Page" in body


def test_page_view_shows_title_content_and_date(app, client, clock):
    _create_page(app, "my-page", "Some **bold** text")

    body = client.get("/my-page").get_data(as_text=True)

    assert "My Page" in body
    assert "<strong>bold</strong>" in body
    assert "Last modified: March 01, 2024" in body


def test_page_view_is_case_insensitive(app, client):
    _create_page(app, "my-page")

    assert client.get("/MY-PAGE").status_code == 200


def test_unknown_page_is_404(client):
    assert client.get("/does-not-exist").status_code == 404


def test_rendered_content_is_sanitized(app, client):
    _create_page(app, "xss", '<script>alert("x")</script>\n\n<img src="x.png" onerror="alert(1)">')

    body = client.get("/xss").get_data(as_text=True)

    assert "alert(" not in body
    assert "onerror" not in body


def test_edit_link_only_for_logged_in_users(app, client, logged_in_client):
    _create_page(app, "my-page")

    assert "/edit?pageName=my-page" in logged_in_client.get("/my-page").get_data(as_text=True)
    logged_in_client.post("/logout")
    assert "/edit?pageName=my-page" not in client.get("/my-page").get_data(as_text=True)


def test_editing_requires_login(client):
    response = client.get("/new-page?pageName=Anything")

    assert response.status_code == 302
    assert "/login" in response.headers["Location"]

    response = client.post("/add-page", data={"name": "x", "content": "y"})
    assert response.status_code == 302
    assert "/login" in response.headers["Location"]


def test_new_page_form_uses_kebab_case(logged_in_client):
    response = logged_in_client.get("/new-page?pageName=MyNewPage")

    assert response.status_code == 200
    assert 'value="my-new-page"' in response.get_data(as_text=True)


def test_new_page_for_existing_name_is_rejected(app, logged_in_client):
    _create_page(app, "my-new-page")

    response = logged_in_client.get("/new-page?pageName=MyNewPage")

    assert response.status_code == 400


def test_new_page_without_name_redirects_home(logged_in_client):
    response = logged_in_client.get("/new-page")

    assert response.status_code == 302


def test_add_page_creates_and_redirects(app, logged_in_client):
    response = logged_in_client.post("/add-page", data={"id": "", "name": "Fresh Page", "content": "# Hello"})

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/fresh-page")
    assert _services(app).page_service.get_page("fresh-page").value.content == "# Hello"


def test_add_page_with_slash_in_name_is_viewable(logged_in_client):
    response = logged_in_client.post("/add-page", data={"id": "", "name": "guides/intro", "content": "body"})

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/guides-intro")
    assert logged_in_client.get(response.headers["Location"]).status_code == 200


def test_add_page_shows_validation_messages(logged_in_client):
    response = logged_in_client.post("/add-page", data={"id": "", "name": "", "content": ""})

    assert response.status_code == 400
    body = response.get_data(as_text=True)
    assert "Name is required" in body
    assert "Content is required" in body


def test_add_page_rejects_home_page_rename(app, logged_in_client):
    home = _create_page(app, "home-page")

    response = logged_in_client.post("/add-page", data={"id": str(home.id), "name": "other", "content": "x"})

    assert response.status_code == 400
    assert "Please keep it home-page" in response.get_data(as_text=True)


def test_add_page_with_attachment_and_download(app, logged_in_client):
    response = logged_in_client.post(
        "/add-page",
        data={
            "id": "",
            "name": "files",
            "content": "see attachment",
            "attachment": (io.BytesIO(b"\x89PNG fake"), "pic.png", "image/png"),
        },
        content_type="multipart/form-data",
    )
    assert response.status_code == 302

    page = _services(app).page_service.get_page("files").value
    attachment = page.attachments[0]
    assert attachment.file_name == "pic.png"

    download = logged_in_client.get(f"/attachment?fileId={attachment.file_id}")
    assert download.status_code == 200
    assert download.data == b"\x89PNG fake"
    assert download.mimetype == "image/png"


def test_unknown_attachment_is_404(client):
    assert client.get("/attachment?fileId=missing").status_code == 404


def test_edit_page_lists_attachments_and_links(app, logged_in_client):
    from domain.wiki.entities import PageInput, UploadedFile

    result = _services(app).page_service.save_page(
        PageInput(
            id=None,
            name="docs",
            content="x",
            attachment=UploadedFile.from_bytes("a.txt", "text/plain", b"a"),
        )
    )
    file_id = result.value.attachments[0].file_id

    body = logged_in_client.get("/edit?pageName=docs").get_data(as_text=True)

    assert f"[a.txt](/attachment?fileId={file_id})" in body
    assert "[Docs](/docs)" in body
    assert "Delete page" in body


def test_edit_home_page_has_no_delete_button(app, logged_in_client):
    _create_page(app, "home-page")

    body = logged_in_client.get("/edit?pageName=home-page").get_data(as_text=True)

    assert "Delete page" not in body


def test_edit_unknown_page_is_404(logged_in_client):
    assert logged_in_client.get("/edit?pageName=nothing").status_code == 404


def test_delete_page(app, logged_in_client):
    page = _create_page(app, "temporary")

    response = logged_in_client.post("/delete-page", data={"id": str(page.id)})

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/home-page")
    assert not _services(app).page_service.get_page("temporary").ok


def test_delete_home_page_is_refused(app, logged_in_client):
    home = _create_page(app, "home-page")

    logged_in_client.post("/delete-page", data={"id": str(home.id)})

    assert _services(app).page_service.get_page("home-page").ok


def test_delete_page_without_id_redirects(logged_in_client):
    response = logged_in_client.post("/delete-page", data={})

    assert response.status_code == 302


def test_delete_attachment_redirects_to_edit(app, logged_in_client):
    from domain.wiki.entities import PageInput, UploadedFile

    page = _services(app).page_service.save_page(
        PageInput(
            id=None,
            name="docs",
            content="x",
            attachment=UploadedFile.from_bytes("a.txt", "text/plain", b"a"),
        )
    ).value

    response = logged_in_client.post(
        "/delete-attachment",
        data={"id": page.attachments[0].file_id, "pageId": str(page.id)},
    )

    assert response.status_code == 302
    assert "/edit?pageName=docs" in response.headers["Location"]
    assert _services(app).page_service.get_page("docs").value.attachments == ()


@pytest.mark.parametrize("data", [{}, {"id": "abc"}, {"pageId": "1"}])
def test_delete_attachment_with_missing_fields_redirects_home(logged_in_client, data):
    response = logged_in_client.post("/delete-attachment", data=data)

    assert response.status_code == 302
