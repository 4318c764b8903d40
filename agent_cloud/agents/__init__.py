"""AI Agents for agent-cloud."""

from agent_cloud.agents.analyzer_agent import AnalyzerAgent, AnalyzerInput, AnalyzerOutput
from agent_cloud.agents.base import BaseAgent
from agent_cloud.agents.planner_agent import PlannerAgent, PlannerInput, PlannerOutput
from agent_cloud.agents.validator_agent import ValidatorAgent, ValidatorInput, ValidatorOutput

__all__ = [
    "BaseAgent",
    "ValidatorAgent",
    "ValidatorInput",
    "ValidatorOutput",
    "AnalyzerAgent",
    "AnalyzerInput",
    "AnalyzerOutput",
    "PlannerAgent",
    "PlannerInput",
    "PlannerOutput",
]
