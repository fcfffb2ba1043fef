import sys

import pytest
import yaml

from appservice.gitops import (
    CmdExecutor,
    CommandError,
    GitOpsError,
    generate_and_push,
    new_cmd_executor,
)
from appservice.ioutils import new_memory_filesystem, new_read_only_fs
from appservice.mock_executor import ErrorStack, Execution, MockExecutor
from appservice.models import Component, ComponentSpec

REPO = "git@example.com:testing/testing.git"
OUTPUT_PATH = "/fake/path"
COMPONENT_DIR = "/fake/path/test-component"
COMPONENT_NAME = "test-component"


def _component():
    return Component(
        name=COMPONENT_NAME,
        spec=ComponentSpec(container_image="testimage:latest", target_port=5000),
    )


def _executor(errors, outputs):
    executor = MockExecutor(*outputs)
    executor.errors = ErrorStack(list(errors))
    return executor


def _outputs(count):
    return [f"test output{i}".encode() for i in range(1, count + 1)]


def test_no_errors_records_commands_and_writes_files():
    fs = new_memory_filesystem()
    executor = _executor([], [])
    generate_and_push(OUTPUT_PATH, REPO, _component(), executor, fs, "main", "/")
    assert executor.executed == [
        Execution(OUTPUT_PATH, "git", ["clone", REPO, COMPONENT_NAME]),
        Execution(COMPONENT_DIR, "git", ["switch", "main"]),
        Execution(COMPONENT_DIR, "rm", ["-rf", "components/test-component"]),
        Execution(COMPONENT_DIR, "git", ["add", "."]),
        Execution(COMPONENT_DIR, "git", ["--no-pager", "diff", "--cached"]),
    ]
    base = "/fake/path/test-component/components/test-component/base"
    kustomization = yaml.safe_load(fs.read_bytes(f"{base}/kustomization.yaml"))
    assert kustomization == {"resources": ["deployment.yaml", "route.yaml", "service.yaml"]}


def test_changes_are_committed_and_pushed():
    executor = _executor([], [b"diff --git a b", b"", b"", b"", b""])
    generate_and_push(
        OUTPUT_PATH, REPO, _component(), executor, new_memory_filesystem(), "main", "/"
    )
    assert executor.executed[-2:] == [
        Execution(COMPONENT_DIR, "git", ["commit", "-m", "Generate GitOps resources"]),
        Execution(COMPONENT_DIR, "git", ["push", "origin", "main"]),
    ]


def test_git_clone_failure():
    executor = _executor([None, Exception("test error")], _outputs(2))
    with pytest.raises(GitOpsError, match="test error"):
        generate_and_push(
            OUTPUT_PATH, REPO, _component(), executor, new_memory_filesystem(), "main", "/"
        )
    assert executor.executed == [Execution(OUTPUT_PATH, "git", ["clone", REPO, COMPONENT_NAME])]


def test_git_switch_and_checkout_success():
    executor = _executor([None, Exception("test error"), None], _outputs(3))
    generate_and_push(
        OUTPUT_PATH, REPO, _component(), executor, new_memory_filesystem(), "main", "/"
    )
    assert Execution(COMPONENT_DIR, "git", ["checkout", "-b", "main"]) in executor.executed


@pytest.mark.parametrize(
    "errors, outputs, message",
    [
        (
            [Exception("Permission denied"), Exception("Fatal error"), None],
            _outputs(3),
            'failed to checkout branch "main" in "/fake/path/test-component" '
            '"test output1": Permission denied',
        ),
        (
            [Exception("Permission Denied"), None, None],
            _outputs(3),
            'failed to delete "components/test-component" folder in repository in '
            '"/fake/path/test-component" "test output1": Permission Denied',
        ),
        (
            [Exception("Fatal error"), None, None, None],
            _outputs(4),
            'failed to add files for component "test-component" to repository in '
            '"/fake/path/test-component" "test output1": Fatal error',
        ),
        (
            [Exception("Permission Denied"), None, None, None, None],
            _outputs(5),
            'failed to check git diff in repository "/fake/path/test-component" '
            '"test output1": Permission Denied',
        ),
        (
            [Exception("Fatal error"), None, None, None, None, None],
            _outputs(6),
            'failed to commit files to repository in "/fake/path/test-component" '
            '"test output1": Fatal error',
        ),
        (
            [Exception("Fatal error"), None, None, None, None, None, None],
            _outputs(6),
            'failed push remote to repository "git@example.com:testing/testing.git" "": '
            "Fatal error",
        ),
    ],
)
def test_step_failures(errors, outputs, message):
    executor = _executor(errors, outputs)
    with pytest.raises(GitOpsError) as info:
        generate_and_push(
            OUTPUT_PATH, REPO, _component(), executor, new_memory_filesystem(), "main", "/"
        )
    assert str(info.value) == message


def test_generate_failure_on_read_only_fs():
    errors = [Exception("Fatal error"), None, None, None, None, None, None]
    executor = _executor(errors, _outputs(6))
    with pytest.raises(GitOpsError) as info:
        generate_and_push(
            OUTPUT_PATH, REPO, _component(), executor, new_read_only_fs(), "main", "/"
        )
    assert str(info.value).startswith(
        'failed to generate the gitops resources in '
        '"/fake/path/test-component/components/test-component/base" '
        'for component "test-component"'
    )


def test_cmd_executor_returns_output():
    executor = new_cmd_executor()
    output = executor.execute("", sys.executable, "-c", "print('hello')")
    assert output.strip() == b"hello"


def test_cmd_executor_runs_in_base_dir(tmp_path):
    (tmp_path / "marker.txt").write_text("present")
    output = CmdExecutor().execute(
        str(tmp_path), sys.executable, "-c", "print(open('marker.txt').read())"
    )
    assert output.strip() == b"present"


def test_cmd_executor_failure_raises_with_output():
    with pytest.raises(CommandError) as info:
        CmdExecutor().execute(
            "", sys.executable, "-c", "import sys; print('oops'); sys.exit(3)"
        )
    assert str(info.value) == "exit status 3"
    assert info.value.output.strip() == b"oops"


def test_cmd_executor_missing_command_raises():
    with pytest.raises(CommandError):
        CmdExecutor().execute("", "definitely-not-a-real-command-xyz")