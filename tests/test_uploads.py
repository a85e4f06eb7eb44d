import base64

from tests.conftest import auth_headers

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64


def test_upload_single_image_and_serve_it(client, seller):
    response = client.post(
        "/api/v1/upload/image",
        files={"image": ("photo.png", PNG_BYTES, "image/png")},
        headers=auth_headers(seller["token"]),
    )
    uploaded = response.json()["data"]

    assert response.status_code == 201
    assert uploaded["url"].startswith(f"{seller['id']}-")
    assert uploaded["url"].endswith(".png")
    assert uploaded["filename"] == "photo.png"
    assert uploaded["size"] == len(PNG_BYTES)
    assert uploaded["mimeType"] == "image/png"
    assert uploaded["previewUrl"] == f"http://testserver/api/v1/media/{uploaded['url']}"

    served = client.get(f"/api/v1/media/{uploaded['url']}")
    assert served.status_code == 200
    assert served.content == PNG_BYTES
    assert served.headers["content-type"] == "image/png"


def test_upload_requires_authentication(client):
    response = client.post("/api/v1/upload/image", files={"image": ("photo.png", PNG_BYTES, "image/png")})

    assert response.status_code == 401


def test_upload_rejects_disallowed_extension(client, seller):
    response = client.post(
        "/api/v1/upload/image",
        files={"image": ("photo.gif", PNG_BYTES, "image/png")},
        headers=auth_headers(seller["token"]),
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_upload_rejects_content_that_is_not_an_image(client, seller):
    response = client.post(
        "/api/v1/upload/image",
        files={"image": ("photo.jpg", b"definitely not a jpeg", "image/jpeg")},
        headers=auth_headers(seller["token"]),
    )

    assert response.status_code == 400


def test_upload_over_size_limit_is_413(client, seller, settings):
    too_big = JPEG_BYTES + b"\x00" * settings.MAX_UPLOAD_SIZE

    response = client.post(
        "/api/v1/upload/image",
        files={"image": ("big.jpg", too_big, "image/jpeg")},
        headers=auth_headers(seller["token"]),
    )

    assert response.status_code == 413
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_batch_upload_returns_one_item_per_file(client, seller):
    response = client.post(
        "/api/v1/upload/images",
        files=[
            ("images", ("a.png", PNG_BYTES, "image/png")),
            ("images", ("b.jpeg", JPEG_BYTES, "image/jpeg")),
        ],
        headers=auth_headers(seller["token"]),
    )
    uploaded = response.json()["data"]

    assert response.status_code == 201
    assert [item["filename"] for item in uploaded] == ["a.png", "b.jpeg"]
    assert uploaded[1]["url"].endswith(".jpeg")


def test_batch_upload_caps_file_count(client, seller, settings):
    files = [("images", (f"{i}.png", PNG_BYTES, "image/png")) for i in range(settings.MAX_FILES_PER_BATCH + 1)]

    response = client.post("/api/v1/upload/images", files=files, headers=auth_headers(seller["token"]))

    assert response.status_code == 400


def test_missing_media_is_404(client):
    response = client.get("/api/v1/media/nothing-here.png")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"
