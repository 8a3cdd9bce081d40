"""Tests for image compression, storage and /api/images endpoints."""

import io

import pytest
from PIL import Image

from cellar.models import ImageType, MemoryCreate, WineColor, WineCreate
from cellar.services.image_processor import InvalidImageError, compress_image


def make_png(size=(1600, 1200), color=(128, 0, 32)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def _seed_wine(wine_repo) -> str:
    return wine_repo.create(WineCreate(
        name="Barolo Cannubi",
        vineyard="Borgogno",
        region="Piedmont, Italy",
        color=WineColor.RED,
        grape_varieties=["Nebbiolo"],
    )).id


def _png_upload(name="label.png", size=(1600, 1200)):
    return ("images", (name, make_png(size), "image/png"))


# === Compression ===


class TestCompressImage:
    def test_large_image_fits_inside_800(self):
        result = compress_image(make_png((1600, 1200)))
        assert (result.width, result.height) == (800, 600)
        assert result.mime_type == "image/webp"

        decoded = Image.open(io.BytesIO(result.data))
        assert decoded.format == "WEBP"
        assert decoded.size == (800, 600)

    def test_portrait_image(self):
        result = compress_image(make_png((900, 2700)))
        assert result.height == 800
        assert result.width == 267

    def test_small_image_not_enlarged(self):
        result = compress_image(make_png((320, 240)))
        assert (result.width, result.height) == (320, 240)

    def test_size_matches_bytes(self):
        result = compress_image(make_png())
        assert result.size == len(result.data)

    def test_garbage_bytes_rejected(self):
        with pytest.raises(InvalidImageError):
            compress_image(b"definitely not an image")

    def test_decompression_bomb_rejected(self, monkeypatch):
        data = make_png((100, 100))
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
        with pytest.raises(InvalidImageError):
            compress_image(data)


class TestImageStorage:
    def test_save_and_delete(self, storage):
        filename = storage.save(compress_image(make_png((10, 10))))
        assert filename.endswith(".webp")
        assert storage.path_for(filename).exists()

        assert storage.delete(filename) is True
        assert not storage.path_for(filename).exists()
        assert storage.delete(filename) is False

    def test_path_for_ignores_directories(self, storage):
        assert storage.path_for("../../etc/passwd") == storage.upload_dir / "passwd"


# === API Endpoint Tests ===


class TestImageUpload:
    def test_upload_wine_images(self, client, wine_repo, storage):
        wine_id = _seed_wine(wine_repo)

        response = client.post(
            f"/api/images/wine/{wine_id}",
            files=[_png_upload("front.png"), _png_upload("back.png", (400, 300))],
            data={"image_type": "front_label"},
        )
        assert response.status_code == 201
        data = response.json()
        assert len(data["images"]) == 2

        first = data["images"][0]
        assert first["wine_id"] == wine_id
        assert first["original_name"] == "front.png"
        assert first["mime_type"] == "image/webp"
        assert first["image_type"] == "front_label"
        assert (first["width"], first["height"]) == (800, 600)
        assert first["url"] == f"/api/images/{first['id']}"
        assert storage.path_for(first["filename"]).exists()

    def test_upload_defaults_to_memory_type(self, client, wine_repo):
        wine_id = _seed_wine(wine_repo)
        response = client.post(f"/api/images/wine/{wine_id}", files=[_png_upload()])
        assert response.status_code == 201
        assert response.json()["images"][0]["image_type"] == "memory"

    def test_upload_missing_wine(self, client):
        response = client.post("/api/images/wine/missing", files=[_png_upload()])
        assert response.status_code == 404

    def test_upload_rejects_non_images(self, client, wine_repo):
        wine_id = _seed_wine(wine_repo)
        response = client.post(
            f"/api/images/wine/{wine_id}",
            files=[("images", ("notes.txt", b"tasting notes", "text/plain"))],
        )
        assert response.status_code == 400

    def test_upload_rejects_undecodable_image(self, client, wine_repo, image_repo, storage):
        wine_id = _seed_wine(wine_repo)
        response = client.post(
            f"/api/images/wine/{wine_id}",
            files=[_png_upload(), ("images", ("broken.png", b"not really a png", "image/png"))],
        )
        assert response.status_code == 400
        assert image_repo.find_by_wine(wine_id) == []
        assert list(storage.upload_dir.iterdir()) == []

    def test_upload_without_files(self, client, wine_repo):
        wine_id = _seed_wine(wine_repo)
        response = client.post(f"/api/images/wine/{wine_id}", data={"image_type": "front_label"})
        assert response.status_code == 400
        assert response.json()["detail"] == "No images uploaded"

    def test_memory_upload_without_files(self, client, wine_repo, memory_repo):
        wine_id = _seed_wine(wine_repo)
        memory = memory_repo.create(MemoryCreate(wine_id=wine_id, title="Picnic", content="Sunny"))
        response = client.post(f"/api/images/memory/{memory.id}", data={"image_type": "memory"})
        assert response.status_code == 400

    def test_upload_rejects_oversized_file(self, client, wine_repo, image_repo):
        wine_id = _seed_wine(wine_repo)
        oversized = b"\0" * (10 * 1024 * 1024 + 1)
        response = client.post(
            f"/api/images/wine/{wine_id}",
            files=[("images", ("huge.jpg", oversized, "image/jpeg"))],
        )
        assert response.status_code == 400
        assert "too large" in response.json()["detail"]
        assert image_repo.find_by_wine(wine_id) == []

    def test_upload_rejects_too_many_files(self, client, wine_repo):
        wine_id = _seed_wine(wine_repo)
        files = [_png_upload(f"{i}.png", (20, 20)) for i in range(6)]
        response = client.post(f"/api/images/wine/{wine_id}", files=files)
        assert response.status_code == 400

    def test_upload_with_foreign_memory_rejected(self, client, wine_repo, memory_repo):
        wine_id = _seed_wine(wine_repo)
        other_wine = _seed_wine(wine_repo)
        memory = memory_repo.create(MemoryCreate(wine_id=other_wine, title="Elsewhere", content="x"))

        response = client.post(
            f"/api/images/wine/{wine_id}",
            files=[_png_upload()],
            data={"memory_id": memory.id},
        )
        assert response.status_code == 400

    def test_upload_memory_images(self, client, wine_repo, memory_repo):
        wine_id = _seed_wine(wine_repo)
        memory = memory_repo.create(MemoryCreate(wine_id=wine_id, title="Picnic", content="Sunny"))

        response = client.post(f"/api/images/memory/{memory.id}", files=[_png_upload()])
        assert response.status_code == 201
        image = response.json()["images"][0]
        assert image["memory_id"] == memory.id
        assert image["wine_id"] == wine_id

        listed = client.get(f"/api/images/memory/{memory.id}").json()
        assert [i["id"] for i in listed] == [image["id"]]

    def test_upload_memory_images_missing_memory(self, client):
        response = client.post("/api/images/memory/missing", files=[_png_upload()])
        assert response.status_code == 404


class TestImageServing:
    def _upload(self, client, wine_id) -> dict:
        response = client.post(f"/api/images/wine/{wine_id}", files=[_png_upload()])
        return response.json()["images"][0]

    def test_serve_image(self, client, wine_repo):
        image = self._upload(client, _seed_wine(wine_repo))

        response = client.get(f"/api/images/{image['id']}")
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/webp"
        assert "max-age=31536000" in response.headers["cache-control"]
        assert Image.open(io.BytesIO(response.content)).size == (800, 600)

    def test_serve_missing_image(self, client):
        assert client.get("/api/images/missing").status_code == 404

    def test_image_info(self, client, wine_repo):
        image = self._upload(client, _seed_wine(wine_repo))
        response = client.get(f"/api/images/{image['id']}/info")
        assert response.status_code == 200
        assert response.json()["filename"] == image["filename"]

    def test_list_wine_images(self, client, wine_repo):
        wine_id = _seed_wine(wine_repo)
        self._upload(client, wine_id)
        self._upload(client, wine_id)
        assert len(client.get(f"/api/images/wine/{wine_id}").json()) == 2

    def test_update_image_metadata(self, client, wine_repo):
        image = self._upload(client, _seed_wine(wine_repo))
        response = client.put(f"/api/images/{image['id']}", json={
            "image_type": ImageType.BACK_LABEL.value,
            "alt_text": "Back label",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["image_type"] == "back_label"
        assert data["alt_text"] == "Back label"

    def test_update_missing_image(self, client):
        assert client.put("/api/images/missing", json={"alt_text": "x"}).status_code == 404

    def test_delete_image_removes_file(self, client, wine_repo, storage):
        image = self._upload(client, _seed_wine(wine_repo))

        assert client.delete(f"/api/images/{image['id']}").status_code == 204
        assert not storage.path_for(image["filename"]).exists()
        assert client.get(f"/api/images/{image['id']}/info").status_code == 404

    def test_deleting_wine_removes_files(self, client, wine_repo, storage):
        wine_id = _seed_wine(wine_repo)
        image = self._upload(client, wine_id)

        client.delete(f"/api/wines/{wine_id}")
        assert not storage.path_for(image["filename"]).exists()

    def test_deleting_memory_removes_files(self, client, wine_repo, memory_repo, storage):
        wine_id = _seed_wine(wine_repo)
        memory = memory_repo.create(MemoryCreate(wine_id=wine_id, title="Picnic", content="Sunny"))
        image = client.post(
            f"/api/images/memory/{memory.id}", files=[_png_upload()],
        ).json()["images"][0]

        client.delete(f"/api/memories/{memory.id}")
        assert not storage.path_for(image["filename"]).exists()
        assert client.get(f"/api/images/{image['id']}/info").status_code == 404
