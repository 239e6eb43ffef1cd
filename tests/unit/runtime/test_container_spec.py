"""Unit tests for container spec construction."""

from bothost.models import Bot, BotRuntime
from bothost.runtime import CONTAINER_CODE_PATH, build_container_spec, build_start_command


def make_bot(**overrides) -> Bot:
    fields = {
        "id": "bot-1",
        "name": "Echo",
        "code_directory": "/srv/bots/bot_echo_abcd1234",
        "container_name": "bot_echo_abcd1234",
    }
    fields.update(overrides)
    return Bot(**fields)


class TestBuildStartCommand:
    """Tests for build_start_command."""

    def test_default_nodejs(self) -> None:
        """The default script installs npm deps and runs node on the entry file."""
        command = build_start_command(make_bot())
        assert command[:2] == ["sh", "-c"]
        script = command[2]
        assert script.startswith(f"cd {CONTAINER_CODE_PATH} && ")
        assert "if [ -f package.json ]" in script
        assert "npm install --production" in script
        assert script.endswith("node index.js")
        assert "[bothost daemon]:" in script

    def test_default_python(self) -> None:
        """Python bots install requirements.txt and run python."""
        script = build_start_command(
            make_bot(runtime=BotRuntime.PYTHON, entry_file="main.py")
        )[2]
        assert "if [ -f requirements.txt ]" in script
        assert "pip install" in script
        assert script.endswith("python main.py")

    def test_custom_command_wrapped(self) -> None:
        """A custom command still runs after dependency installation."""
        script = build_start_command(make_bot(start_command="npm run start:prod"))[2]
        assert "npm install --production" in script
        assert script.endswith("&& npm run start:prod")
        assert "node index.js" not in script


class TestBuildContainerSpec:
    """Tests for build_container_spec."""

    def test_resource_limits(self) -> None:
        """Memory is in bytes, swap is twice memory, CPU is in nano CPUs."""
        spec = build_container_spec(make_bot(memory_limit_mb=512, cpu_limit=1.5), [])
        assert spec.memory_bytes == 512 * 1024 * 1024
        assert spec.memory_swap_bytes == 2 * spec.memory_bytes
        assert spec.nano_cpus == 1_500_000_000

    def test_restart_policy(self) -> None:
        """auto_restart maps to unless-stopped, otherwise no."""
        assert build_container_spec(make_bot(auto_restart=True), []).restart_policy["Name"] == (
            "unless-stopped"
        )
        assert build_container_spec(make_bot(), []).restart_policy["Name"] == "no"

    def test_image_per_runtime(self) -> None:
        """The image is derived from the runtime kind."""
        assert build_container_spec(make_bot(), []).image == "node:20-alpine"
        python_bot = make_bot(runtime=BotRuntime.PYTHON, entry_file="main.py")
        assert build_container_spec(python_bot, []).image == "python:3.11-alpine"

    def test_image_override(self) -> None:
        """Configured images replace the defaults."""
        spec = build_container_spec(
            make_bot(), [], runtime_images={BotRuntime.NODEJS: "node:22-alpine"}
        )
        assert spec.image == "node:22-alpine"

    def test_environment_and_labels(self) -> None:
        """Env pairs become KEY=value strings and labels identify the bot."""
        spec = build_container_spec(make_bot(), [("TOKEN", "s3cret"), ("MODE", "prod")])
        assert spec.environment == ["TOKEN=s3cret", "MODE=prod"]
        assert spec.labels == {
            "bothost.bot.id": "bot-1",
            "bothost.bot.name": "Echo",
            "bothost.managed": "true",
        }
        assert spec.name == "bot_echo_abcd1234"
        assert spec.network_mode == "bridge"
        assert spec.working_dir == CONTAINER_CODE_PATH

    def test_bind_mount_translated(self) -> None:
        """The code directory is bind-mounted read-write using engine path syntax."""
        bot = make_bot(code_directory=r"C:\bots\bot_echo_abcd1234")
        spec = build_container_spec(bot, [], windows_host=True)
        assert spec.binds == ["/c/bots/bot_echo_abcd1234:/bot:rw"]
