import pytest
import responses

from appservice.util import (
    DevfileNotFoundError,
    EndpointError,
    convert_github_url,
    curl_endpoint,
    download_devfile,
    is_exist,
    read_devfiles_from_repo,
    sanitize_name,
)


@pytest.fixture
def mocked_http():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.mark.parametrize(
    "display, want",
    [
        ("PetClinic", "petclinic"),
        ("PetClinic App", "petclinic-app"),
        ("Pet Clinic Application", "pet-clinic-application"),
        ("Pet Clinic Application Super Super Long Display name",
         "pet-clinic-application-super-super-long-display-na"),
    ],
)
def test_sanitize_name(display, want):
    assert sanitize_name(display) == want


def test_is_exist(tmp_path):
    assert is_exist(tmp_path) is True
    assert is_exist(tmp_path / "pathdoesnotexist") is False
    with pytest.raises(ValueError):
        is_exist("\000x")


@pytest.mark.parametrize(
    "url, want",
    [
        ("https://github.com/devfile-samples/devfile-sample-java-springboot-basic",
         "https://raw.githubusercontent.com/devfile-samples/devfile-sample-java-springboot-basic/main"),
        ("https://github.com/devfile-samples/devfile-sample-java-springboot-basic.git",
         "https://raw.githubusercontent.com/devfile-samples/devfile-sample-java-springboot-basic/main"),
        ("https://some.url", "https://some.url"),
        ("https://raw.githubusercontent.com/devfile-samples/devfile-sample-java-springboot-basic/main/devfile.yaml",
         "https://raw.githubusercontent.com/devfile-samples/devfile-sample-java-springboot-basic/main/devfile.yaml"),
        ("https://github.com/devfile/api/tree/2.1.x", "https://raw.githubusercontent.com/devfile/api/2.1.x"),
    ],
)
def test_convert_github_url(url, want):
    assert convert_github_url(url) == want


def test_convert_github_url_invalid():
    with pytest.raises(ValueError):
        convert_github_url("\000x")


def test_curl_endpoint(mocked_http):
    mocked_http.add(responses.GET, "https://example.com/ok", body=b"hello", status=200)
    mocked_http.add(responses.GET, "https://example.com/somepath", status=404)
    assert curl_endpoint("https://example.com/ok") == b"hello"
    with pytest.raises(EndpointError):
        curl_endpoint("https://example.com/somepath")
    with pytest.raises(EndpointError):
        curl_endpoint("\000x")


def test_download_devfile_hidden_dir(mocked_http):
    base = "https://example.com/repo/main"
    for name in ("devfile.yaml", ".devfile.yaml"):
        mocked_http.add(responses.GET, f"{base}/{name}", status=404)
    mocked_http.add(responses.GET, f"{base}/.devfile/devfile.yaml", body=b"schemaVersion: 2.2.0")
    assert download_devfile(base) == b"schemaVersion: 2.2.0"


def test_download_devfile_missing(mocked_http):
    base = "https://example.com/none"
    for name in ("devfile.yaml", ".devfile.yaml", ".devfile/devfile.yaml", ".devfile/.devfile.yaml"):
        mocked_http.add(responses.GET, f"{base}/{name}", status=404)
    with pytest.raises(DevfileNotFoundError):
        download_devfile(base)


def _multi_repo(root):
    (root / "devfile.yaml").write_text("root")
    java = root / "devfile-sample-java-springboot-basic"
    java.mkdir()
    (java / "devfile.yaml").write_text("java")
    py = root / "python" / "devfile-sample-python-basic"
    py.mkdir(parents=True)
    (py / "devfile.yaml").write_text("python")
    hidden = root / "hidden" / ".devfile"
    hidden.mkdir(parents=True)
    (hidden / "devfile.yaml").write_text("hidden")


def test_read_devfiles_not_multi_component(tmp_path):
    (tmp_path / "devfile.yaml").write_text("root")
    with pytest.raises(DevfileNotFoundError):
        read_devfiles_from_repo(str(tmp_path), 1)


def test_read_devfiles_depth_one(tmp_path):
    _multi_repo(tmp_path)
    found = read_devfiles_from_repo(str(tmp_path), 1)
    assert found == {"devfile-sample-java-springboot-basic": b"java", "hidden": b"hidden"}


def test_read_devfiles_depth_two(tmp_path):
    _multi_repo(tmp_path)
    found = read_devfiles_from_repo(str(tmp_path), 2)
    assert set(found) == {
        "devfile-sample-java-springboot-basic",
        "python/devfile-sample-python-basic",
        "hidden",
    }
    assert found["python/devfile-sample-python-basic"] == b"python"