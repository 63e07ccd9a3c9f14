"""Integration tests for the init and create workflows.

git and STM32CubeMX are replaced with fakes; everything else runs on a
temporary directory.
"""

import json
import subprocess
from pathlib import Path

import pytest

from stm32tool import cubemx, project, vcs
from stm32tool.core.errors import CubeMXError, ProjectError
from stm32tool.creators import base as creators_base
from stm32tool.cubemx import Toolchain
from stm32tool.ide import EIDE, IdeInitArgs, IdeInitializer
from stm32tool.project import CreateOptions, InitOptions, run_create, run_init

IOC_CONTENT = """\
Mcu.Family=STM32H7
MMTAppReg1.MEMADDRESS=0x24000000
MMTAppReg1.MEMSIZE=0x50000
MMTAppRegionsCount=1
MMTConfigApplied=true
NVIC.BusFault_IRQn=true
RCC.HSE_VALUE=25000000
"""


@pytest.fixture
def fake_git(monkeypatch):
    calls = []
    monkeypatch.setattr(vcs, "init_repository", lambda: calls.append("init") or True)
    monkeypatch.setattr(vcs, "initial_commit", lambda message="Initial commit": calls.append("commit") or True)
    monkeypatch.setattr(vcs, "get_author", lambda: "git-user")
    return calls


class FakeCubeMX:
    """Stands in for run_script: the first script saves the .ioc file."""

    def __init__(self, fail_on=None):
        self.scripts = []
        self.fail_on = fail_on

    def __call__(self, script, config=None):
        self.scripts.append(script)
        if self.fail_on == len(self.scripts):
            raise CubeMXError("Run script failed with status: 1")
        if script.startswith("load "):
            ioc_path = script.split("config saveas ", 1)[1].splitlines()[0]
            Path(ioc_path).write_text(IOC_CONTENT, encoding="utf-8")


class RecordingInitializer(IdeInitializer):
    key = "recording"
    name = "Recording"

    def __init__(self):
        self.calls = []

    def init(self, args, force=False, config=None):
        self.calls.append((args, force))
        self.config = config


class TestRunInit:
    """Tests for the init workflow."""

    def test_generates_project_files(self, tmp_path, monkeypatch, fake_git):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "Makefile").write_text("CFLAGS += $(MCU)\nCFLAGS += -Wall\n", encoding="utf-8")
        initializer = RecordingInitializer()

        run_init(InitOptions(), [initializer], config={"project": {"author": "Ann"}})

        assert fake_git == ["init", "commit"]
        assert (tmp_path / ".gitignore").exists()
        assert "for Ann" in (tmp_path / ".clang-format").read_text(encoding="utf-8")
        for directory in project.USER_CODE_DIRS:
            assert (tmp_path / directory).is_dir()
        assert "@author  Ann" in (tmp_path / "UserCode/app/app.h").read_text(encoding="utf-8")
        assert (tmp_path / "UserCode/app/app.c").exists()
        assert (tmp_path / "UserCode/README.md").exists()
        assert initializer.calls == [(IdeInitArgs(), False)]

        makefile = (tmp_path / "Makefile").read_text(encoding="utf-8").splitlines()
        assert makefile[makefile.index("CFLAGS += $(MCU)") + 3] == "CFLAGS += -include UserCode/app/app.h"

    def test_author_falls_back_to_git(self, tmp_path, monkeypatch, fake_git):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("PROJECT_AUTHOR", raising=False)

        run_init(InitOptions(), [], config={})

        assert "for git-user" in (tmp_path / ".clang-format").read_text(encoding="utf-8")

    def test_skip_options(self, tmp_path, monkeypatch, fake_git):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "Makefile").write_text("CFLAGS += $(MCU)\n", encoding="utf-8")
        options = InitOptions(skip_generate_user_code=True, skip_generate_clang_format=True)

        run_init(options, [], config={})

        assert not (tmp_path / "UserCode").exists()
        assert not (tmp_path / ".clang-format").exists()
        # headers are implied off without user code
        assert (tmp_path / "Makefile").read_text(encoding="utf-8") == "CFLAGS += $(MCU)\n"

    def test_existing_files_kept_without_force(self, tmp_path, monkeypatch, fake_git):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".clang-format").write_text("mine\n", encoding="utf-8")

        run_init(InitOptions(), [], config={})

        assert (tmp_path / ".clang-format").read_text(encoding="utf-8") == "mine\n"

    def test_failing_initializer_is_skipped(self, tmp_path, monkeypatch, fake_git, caplog):
        monkeypatch.chdir(tmp_path)
        after = RecordingInitializer()

        run_init(InitOptions(), [EIDE(), after], config={})

        assert "initialization failed" in caplog.text
        assert len(after.calls) == 1
        assert fake_git[-1] == "commit"

    def test_rerun_is_idempotent(self, tmp_path, monkeypatch, fake_git):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "CMakeLists_template.txt").write_text(
            "add_executable(${PROJECT_NAME}.elf ${SOURCES} ${LINKER_SCRIPT})\n", encoding="utf-8"
        )

        run_init(InitOptions(), [], config={})
        first = (tmp_path / "CMakeLists_template.txt").read_text(encoding="utf-8")
        run_init(InitOptions(), [], config={})

        assert (tmp_path / "CMakeLists_template.txt").read_text(encoding="utf-8") == first
        assert first.count("UserCode/app/app.h") == 1


class TestRunCreate:
    """Tests for the create workflow."""

    def test_creates_f407_project(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        fake = FakeCubeMX()
        monkeypatch.setattr(creators_base, "run_script", fake)

        project_dir = run_create(CreateOptions(project_name="blinky"), confirm=lambda prompt: True)

        assert project_dir == tmp_path / "blinky"
        assert Path.cwd() == project_dir
        first, second = fake.scripts
        assert first.splitlines()[:2] == ["load STM32F407VETx", "project name blinky"]
        assert 'project toolchain "STM32CubeIDE"' in first
        assert "project generateunderroot 1" in first
        assert f"config saveas {project_dir / 'blinky.ioc'}" in first
        assert second.startswith(f"config load {project_dir / 'blinky.ioc'}\n")

        ioc = (project_dir / "blinky.ioc").read_text(encoding="utf-8")
        assert "RCC.HSE_VALUE=8000000\n" in ioc
        # F407 leaves the MMT section alone
        assert "MMTAppRegionsCount=1" in ioc

    def test_creates_h723_project(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(creators_base, "run_script", FakeCubeMX())
        options = CreateOptions(project_name="h7", mcu="STM32H723VETx", toolchain=Toolchain.MAKEFILE)

        project_dir = run_create(options, confirm=lambda prompt: True)

        ioc = (project_dir / "h7.ioc").read_text(encoding="utf-8")
        assert ioc == (
            "Mcu.Family=STM32H7\n"
            "MMTAppRegionsCount=0\n"
            "MMTConfigApplied=false\n"
            "NVIC.BusFault_IRQn=true\n"
            "RCC.HSE_VALUE=8000000\n"
        )

    def test_makefile_toolchain_not_under_root(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        fake = FakeCubeMX()
        monkeypatch.setattr(creators_base, "run_script", fake)

        run_create(CreateOptions(project_name="mk", toolchain=Toolchain.MAKEFILE), confirm=lambda prompt: True)

        assert "project generateunderroot 0" in fake.scripts[0]
        assert 'project toolchain "Makefile"' in fake.scripts[1]

    def test_existing_directory_replaced(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(creators_base, "run_script", FakeCubeMX())
        (tmp_path / "blinky").mkdir()
        (tmp_path / "blinky" / "stale.txt").write_text("old", encoding="utf-8")
        prompts = []

        run_create(CreateOptions(project_name="blinky"), confirm=lambda prompt: prompts.append(prompt) or True)

        assert len(prompts) == 1
        assert not (tmp_path / "blinky" / "stale.txt").exists()

    def test_declined_replacement_aborts(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "blinky").mkdir()
        (tmp_path / "blinky" / "keep.txt").write_text("mine", encoding="utf-8")

        with pytest.raises(ProjectError, match="aborted"):
            run_create(CreateOptions(project_name="blinky"), confirm=lambda prompt: False)

        assert (tmp_path / "blinky" / "keep.txt").read_text(encoding="utf-8") == "mine"

    def test_unknown_mcu(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ProjectError, match="Unknown MCU"):
            run_create(CreateOptions(project_name="x", mcu="STM32F103C8Tx"), confirm=lambda prompt: True)

        assert not (tmp_path / "x").exists()

    def test_script_failure_names_step(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(creators_base, "run_script", FakeCubeMX(fail_on=2))

        with pytest.raises(CubeMXError, match="second script"):
            run_create(CreateOptions(project_name="blinky"), confirm=lambda prompt: True)

    def test_run_init_after_create(self, tmp_path, monkeypatch, fake_git):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(creators_base, "run_script", FakeCubeMX())
        monkeypatch.setattr(project, "load_config", lambda: {})
        initializer = RecordingInitializer()

        project_dir = run_create(
            CreateOptions(project_name="blinky", run_init=True), lambda prompt: True, [initializer]
        )

        assert (project_dir / "UserCode" / "app" / "app.h").exists()
        assert len(initializer.calls) == 1


class TestCreateConfiguration:
    """create reads stm32tool.json from the directory it is started in."""

    CONFIG = {
        "cubemx": {"executable": "/opt/mx/cubemx"},
        "gitignore": {"config_dir": "gitignore-configs"},
        "project": {"author": "Ann"},
    }

    @pytest.fixture
    def start_dir(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(cubemx.sys, "platform", "linux")
        (tmp_path / "stm32tool.json").write_text(json.dumps(self.CONFIG), encoding="utf-8")
        configs = tmp_path / "gitignore-configs"
        configs.mkdir()
        (configs / "custom.toml").write_text(
            'name = "Custom"\ndescription = "from the start directory"\nenabled = true\nignore = ["out/"]\n',
            encoding="utf-8",
        )
        return tmp_path

    def test_configured_executable_used(self, start_dir, monkeypatch):
        commands = []

        def run(command, **kwargs):
            commands.append(command)
            with open(command[2], encoding="utf-8") as f:
                script = f.read()
            if script.startswith("load "):
                ioc_path = script.split("config saveas ", 1)[1].splitlines()[0]
                Path(ioc_path).write_text(IOC_CONTENT, encoding="utf-8")
            return subprocess.CompletedProcess(command, 0)

        monkeypatch.setattr(cubemx.subprocess, "run", run)

        run_create(CreateOptions(project_name="blinky"), confirm=lambda prompt: True)

        assert len(commands) == 2
        assert all(command[0] == "/opt/mx/cubemx" for command in commands)

    def test_init_after_create_uses_start_config(self, start_dir, monkeypatch, fake_git):
        monkeypatch.setattr(creators_base, "run_script", FakeCubeMX())
        initializer = RecordingInitializer()

        project_dir = run_create(
            CreateOptions(project_name="blinky", run_init=True), lambda prompt: True, [initializer]
        )

        assert "for Ann" in (project_dir / ".clang-format").read_text(encoding="utf-8")
        assert "### Custom ###" in (project_dir / ".gitignore").read_text(encoding="utf-8")
        assert initializer.config["cubemx"]["executable"] == "/opt/mx/cubemx"


class TestResolveConfigPaths:
    def test_relative_gitignore_dir(self, tmp_path):
        config = {"gitignore": {"config_dir": "configs"}, "project": {"author": "Ann"}}

        resolved = project.resolve_config_paths(config, tmp_path)

        assert resolved["gitignore"]["config_dir"] == str(tmp_path / "configs")
        assert resolved["project"] == {"author": "Ann"}
        assert config["gitignore"]["config_dir"] == "configs"

    def test_absolute_dir_unchanged(self, tmp_path):
        config = {"gitignore": {"config_dir": str(tmp_path)}}

        assert project.resolve_config_paths(config, Path("/elsewhere")) is config
