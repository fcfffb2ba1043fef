import pytest

from appservice.devfile import (
    AttributeKeyNotFound,
    Attributes,
    Container,
    DevfileComponent,
    DevfileData,
    DevfileError,
    DevfileMetadata,
    Project,
    convert_application_to_devfile,
    parse_devfile_model,
)
from appservice.models import Application, ApplicationGitRepository, ApplicationSpec

APP_REPO = "https://github.com/testorg/petclinic-app"
GITOPS_REPO = "https://github.com/testorg/petclinic-gitops"


def test_parse_devfile_model():
    text = f"""
metadata:
  attributes:
    appModelRepository.url: {APP_REPO}
    gitOpsRepository.url: {GITOPS_REPO}
  name: petclinic
schemaVersion: 2.2.0"""
    want = DevfileData(
        schema_version="2.2.0",
        metadata=DevfileMetadata(
            name="petclinic",
            attributes=Attributes()
            .put_string("gitOpsRepository.url", GITOPS_REPO)
            .put_string("appModelRepository.url", APP_REPO),
        ),
    )
    assert parse_devfile_model(text) == want


def test_parse_requires_schema_version():
    with pytest.raises(DevfileError):
        parse_devfile_model("metadata:\n  name: x\n")


def test_convert_simple_application():
    app = Application(spec=ApplicationSpec(display_name="Petclinic"))
    devfile = convert_application_to_devfile(app, GITOPS_REPO, APP_REPO)
    assert devfile == DevfileData(
        schema_version="2.1.0",
        metadata=DevfileMetadata(
            name="Petclinic",
            attributes=Attributes({"gitOpsRepository.url": GITOPS_REPO, "appModelRepository.url": APP_REPO}),
        ),
    )


def test_convert_application_with_branch_and_context():
    repo = ApplicationGitRepository(branch="testbranch", context="test/context")
    app = Application(
        spec=ApplicationSpec(
            display_name="Petclinic",
            app_model_repository=repo,
            git_ops_repository=ApplicationGitRepository(branch="testbranch", context="test/context"),
        )
    )
    devfile = convert_application_to_devfile(app, GITOPS_REPO, APP_REPO)
    assert dict(devfile.metadata.attributes) == {
        "appModelRepository.branch": "testbranch",
        "gitOpsRepository.branch": "testbranch",
        "appModelRepository.context": "test/context",
        "gitOpsRepository.context": "test/context",
        "gitOpsRepository.url": GITOPS_REPO,
        "appModelRepository.url": APP_REPO,
    }
    assert devfile.schema_version == "2.1.0"


def test_attribute_errors():
    attrs = Attributes().put_integer("replicas", 2)
    attrs["flag"] = True
    assert attrs.get_number("replicas") == 2.0
    with pytest.raises(AttributeKeyNotFound):
        attrs.get_string("missing")
    with pytest.raises(DevfileError):
        attrs.get_number("flag")
    with pytest.raises(DevfileError):
        attrs.get_string("replicas")


def test_projects_and_components():
    devfile = DevfileData(
        schema_version="2.1.0",
        components=[
            DevfileComponent("a", container=Container(image="img")),
            DevfileComponent("b", kubernetes={}),
        ],
    )
    assert [c.name for c in devfile.get_components(container_only=True)] == ["a"]
    comp = devfile.get_components(True)[0]
    comp.container.cpu_limit = "1"
    assert devfile.components[0].container.cpu_limit == ""
    devfile.update_component(comp)
    assert devfile.components[0].container.cpu_limit == "1"
    with pytest.raises(DevfileError):
        devfile.update_component(DevfileComponent("zzz"))
    devfile.add_projects([Project("p", {"origin": "url"})])
    with pytest.raises(DevfileError):
        devfile.add_projects([Project("p")])
    assert devfile.get_projects() == [Project("p", {"origin": "url"})]


def test_round_trip():
    devfile = DevfileData(
        schema_version="2.1.0",
        metadata=DevfileMetadata(name="n", language="python", project_type="flask"),
        components=[DevfileComponent("a", container=Container(image="img", cpu_limit="2"),
                                     attributes=Attributes().put_string("r", "x"))],
        projects=[Project("p", {"origin": "url"})],
    )
    assert DevfileData.from_dict(devfile.to_dict()) == devfile