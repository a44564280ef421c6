"""Load settings.yaml into typed dataclasses. Resolves agent endpoints from the environment."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

AGENT_NAMES = ("A", "B", "Mediator")
MODES = ("batch", "streaming")


class ConfigError(Exception):
    """Raised when required settings are missing or malformed."""


@dataclass(frozen=True)
class AgentConfig:
    name: str
    base_url_env: str
    api_key_env: str
    model: str
    temperature: float
    max_tokens: int
    timeout_sec: int
    base_url: str = ""
    api_key: str = ""


@dataclass(frozen=True)
class PacingConfig:
    answer_ms: tuple[int, int] = (500, 1500)
    recap_ms: tuple[int, int] = (800, 2000)
    next_round_ms: tuple[int, int] = (1000, 2000)


@dataclass
class PromptsConfig:
    framing: str
    framing_streaming: str
    note: str
    note_follow: str
    closing_follow: str
    recap: str
    next_round: str
    opening_default: str
    followup_default: str
    followup_streaming_default: str
    stage_instructions: list[str] = field(default_factory=list)
    personas: dict[str, str] = field(default_factory=dict)


@dataclass
class DefaultsConfig:
    rounds: int
    max_rounds: int
    mode: str = "batch"
    topic: str = ""
    pacing: PacingConfig = field(default_factory=PacingConfig)


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    agents: dict[str, AgentConfig]
    prompts: PromptsConfig


def _range_ms(raw: list | None, fallback: tuple[int, int]) -> tuple[int, int]:
    if raw is None:
        return fallback
    low, high = (int(v) for v in raw)
    if low < 0 or high < low:
        raise ConfigError(f"Invalid pacing range: {raw}")
    return low, high


def missing_agent_settings(config: AppConfig) -> list[str]:
    """Return the environment variable names whose values are absent, in agent order."""
    missing: list[str] = []
    for name in AGENT_NAMES:
        agent = config.agents.get(name)
        if agent is None:
            missing.append(f"agents.{name}")
            continue
        if not agent.base_url:
            missing.append(agent.base_url_env)
        if not agent.api_key:
            missing.append(agent.api_key_env)
    return missing


def require_agent_settings(config: AppConfig) -> None:
    """Raise ConfigError unless every agent has an endpoint and a key."""
    missing = missing_agent_settings(config)
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")


def effective_rounds(config: AppConfig, rounds: int | None) -> int:
    """Requested value wins over config; both are capped at max_rounds."""
    requested = rounds if rounds is not None else config.defaults.rounds
    if requested > config.defaults.max_rounds:
        logger.warning(
            "Requested %d rounds, capping at max_rounds=%d",
            requested,
            config.defaults.max_rounds,
        )
        return config.defaults.max_rounds
    return requested


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing, ConfigError if a
    section is malformed. Missing endpoint credentials are only logged here;
    callers enforce them with require_agent_settings().
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    try:
        defaults_raw = raw["defaults"]
        pacing_raw = defaults_raw.get("pacing") or {}
        fallback = PacingConfig()
        defaults = DefaultsConfig(
            rounds=int(defaults_raw["rounds"]),
            max_rounds=int(defaults_raw["max_rounds"]),
            mode=str(defaults_raw.get("mode", "batch")),
            topic=str(defaults_raw.get("topic", "")),
            pacing=PacingConfig(
                answer_ms=_range_ms(pacing_raw.get("answer_ms"), fallback.answer_ms),
                recap_ms=_range_ms(pacing_raw.get("recap_ms"), fallback.recap_ms),
                next_round_ms=_range_ms(pacing_raw.get("next_round_ms"), fallback.next_round_ms),
            ),
        )

        prompts_raw = raw["prompts"]
        personas_raw = raw.get("personas", {})
        prompts = PromptsConfig(
            framing=prompts_raw["framing"],
            framing_streaming=prompts_raw["framing_streaming"],
            note=prompts_raw["note"],
            note_follow=prompts_raw["note_follow"],
            closing_follow=prompts_raw["closing_follow"],
            recap=prompts_raw["recap"],
            next_round=prompts_raw["next_round"],
            opening_default=prompts_raw["opening_default"],
            followup_default=prompts_raw["followup_default"],
            followup_streaming_default=prompts_raw["followup_streaming_default"],
            stage_instructions=list(prompts_raw.get("stage_instructions", [])),
            personas={k: str(v) for k, v in personas_raw.items()},
        )

        agents: dict[str, AgentConfig] = {}
        for agent_name, agent_raw in raw["agents"].items():
            base_url = os.environ.get(agent_raw["base_url_env"], "").strip()
            api_key = os.environ.get(agent_raw["api_key_env"], "").strip()
            agents[agent_name] = AgentConfig(
                name=agent_name,
                base_url_env=agent_raw["base_url_env"],
                api_key_env=agent_raw["api_key_env"],
                model=str(agent_raw.get("model", "n/a")),
                temperature=float(agent_raw["temperature"]),
                max_tokens=int(agent_raw["max_tokens"]),
                timeout_sec=int(agent_raw["timeout_sec"]),
                base_url=base_url,
                api_key=api_key,
            )
            if base_url and api_key:
                logger.info("Agent %s endpoint: %s", agent_name, base_url)
            else:
                logger.info(
                    "Agent %s not configured — set %s and %s in .env",
                    agent_name,
                    agent_raw["base_url_env"],
                    agent_raw["api_key_env"],
                )
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigError(f"Malformed settings file {settings_path}: {exc}") from exc

    if defaults.mode not in MODES:
        raise ConfigError(f"Unknown debate mode '{defaults.mode}', expected one of {MODES}")

    return AppConfig(defaults=defaults, agents=agents, prompts=prompts)
