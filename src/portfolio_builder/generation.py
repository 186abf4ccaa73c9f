"""
Content-generation gateway.

Every operation formats a narrow projection of the portfolio into a prompt, asks the
provider for strict JSON and validates the reply against a small pydantic model. Any
failure on the way (network, timeout, SDK error, unparseable or wrongly shaped reply)
surfaces as a single GenerationFailed; nothing partial is ever returned.
"""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Iterable, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from portfolio_builder.errors import GenerationFailed
from portfolio_builder.models import PortfolioDocument
from portfolio_builder.providers.base import ImageProvider, TextProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExperienceSummary:
    role: str
    company: str
    description: str


@dataclass(frozen=True)
class ProjectSummary:
    title: str
    description: str


@dataclass(frozen=True)
class PortfolioProjection:
    name: str
    headline: str
    about_me: str
    skills: tuple[str, ...]
    experience: tuple[ExperienceSummary, ...]
    projects: tuple[ProjectSummary, ...]

    @classmethod
    def from_document(cls, doc: PortfolioDocument) -> PortfolioProjection:
        return cls(
            name=doc.name,
            headline=doc.headline,
            about_me=doc.about_me,
            skills=tuple(s.name for s in doc.skills),
            experience=tuple(
                ExperienceSummary(role=e.role, company=e.company, description=e.description) for e in doc.experiences
            ),
            projects=tuple(ProjectSummary(title=p.title, description=p.description) for p in doc.projects),
        )


class _Output(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class AboutMeOutput(_Output):
    about_me: str = Field(alias="aboutMe")


class SkillTagsOutput(_Output):
    skill_tags: list[str] = Field(alias="skillTags")


class DescriptionOutput(_Output):
    description: str


class CoverLetterOutput(_Output):
    cover_letter: str = Field(alias="coverLetter")


class TestimonialOutput(_Output):
    testimonial_text: str = Field(alias="testimonialText")


class PortfolioEvaluation(_Output):
    # The score is the model's own judgment; no range check.
    score: int | float
    strengths: str
    suggestions: list[str]


O = TypeVar("O", bound=_Output)


def _strip_code_fences(text: str) -> str:
    s = text.strip()
    if s.startswith("```"):
        # Remove leading fence line
        first_nl = s.find("\n")
        if first_nl != -1:
            s = s[first_nl + 1 :]
        # Remove trailing fence
        if s.rstrip().endswith("```"):
            s = s.rstrip()[:-3]
    return s.strip()


def _parse_json(raw_text: str | None) -> Any:
    if not raw_text:
        raise GenerationFailed("empty response")
    try:
        return json.loads(_strip_code_fences(raw_text))
    except ValueError as e:
        raise GenerationFailed("response is not JSON") from e


def _bullets(lines: Iterable[str]) -> str:
    return "\n".join(f"- {ln}" for ln in lines) or "- (none)"


def _portfolio_block(p: PortfolioProjection, include_headline: bool) -> str:
    parts = [f"Name: {p.name}"]
    if include_headline:
        parts.append(f"Headline: {p.headline}")
    parts.append(f'\nAbout Me:\n"{p.about_me}"')
    parts.append(f"\nSkills:\n{_bullets(p.skills)}")
    parts.append(
        "\nExperience:\n"
        + _bullets(f"Role: {e.role} at {e.company}. Description: {e.description}" for e in p.experience)
    )
    parts.append(
        "\nProjects:\n" + _bullets(f"Project: {pr.title}. Description: {pr.description}" for pr in p.projects)
    )
    return "\n".join(parts)


def filter_new_skills(suggestions: Iterable[str], existing: Iterable[str]) -> list[str]:
    """Drop suggestions already present (case-insensitive), keeping the returned order."""
    seen = {s.strip().lower() for s in existing}
    out: list[str] = []
    for s in suggestions:
        key = s.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(s.strip())
    return out


class ContentGateway:
    def __init__(self, text: TextProvider, image: ImageProvider | None = None) -> None:
        self.text = text
        self.image = image

    async def _ask(self, operation: str, prompt: str, output: type[O]) -> O:
        try:
            raw = await self.text.complete(prompt)
            return output.model_validate(_parse_json(raw))
        except GenerationFailed as e:
            logger.warning("%s via %s returned an unusable payload: %s", operation, self.text.name, e)
            raise GenerationFailed(f"{operation} failed") from e
        except ValidationError as e:
            logger.warning("%s via %s returned the wrong shape: %s", operation, self.text.name, e)
            raise GenerationFailed(f"{operation} failed") from e
        except Exception as e:
            logger.exception("%s via %s failed", operation, self.text.name)
            raise GenerationFailed(f"{operation} failed") from e

    async def draft_about_me(self, resume_text: str) -> str:
        prompt = (
            'You are a career coach. Based on this resume text, generate a creative 3-line "About Me" section.\n'
            'Return STRICT JSON only (no markdown) with key "aboutMe" (string).\n'
            f"\nResume text:\n{resume_text}\n"
        )
        return (await self._ask("about-me", prompt, AboutMeOutput)).about_me

    async def suggest_skill_tags(self, skills: str) -> list[str]:
        prompt = (
            "You are a career coach specializing in helping software developers create professional portfolios.\n"
            "Based on the following list of skills, suggest a categorized list of skill tags.\n"
            'Return STRICT JSON only (no markdown) with key "skillTags": an array of strings, for example\n'
            '{"skillTags": ["JavaScript", "React", "Node.js", "MongoDB"]}\n'
            f"\nSkills: {skills}\n"
        )
        return (await self._ask("skill-tags", prompt, SkillTagsOutput)).skill_tags

    async def describe_experience(self, role: str, company: str, tasks: str) -> str:
        prompt = (
            "You are a career coach who is an expert at writing job descriptions for software developer portfolios.\n"
            "Based on the role, company, and summary of tasks provided, generate a detailed and professional job "
            "description of no more than 60 words.\n"
            'Return STRICT JSON only (no markdown) with key "description" (string).\n'
            f"\nRole: {role}\nCompany: {company}\nTasks: {tasks}\n"
        )
        return (await self._ask("experience-description", prompt, DescriptionOutput)).description

    async def describe_project(self, title: str, tech_stack: str) -> str:
        prompt = (
            "You are a technical writer helping a software developer present their work.\n"
            "Write a concise, engaging 2-3 sentence description of the project below for a portfolio. "
            "Mention what it does and how the listed technologies are used.\n"
            'Return STRICT JSON only (no markdown) with key "description" (string).\n'
            f"\nProject Title: {title}\nTech Stack: {tech_stack}\n"
        )
        return (await self._ask("project-description", prompt, DescriptionOutput)).description

    async def write_cover_letter(self, job_description: str, portfolio: PortfolioProjection) -> str:
        prompt = (
            "You are a professional career coach and expert cover letter writer for software developers.\n"
            "Here is the user's portfolio:\n\n"
            f"{_portfolio_block(portfolio, include_headline=False)}\n\n"
            "Carefully analyze the following job description and write a cover letter that highlights the most "
            "relevant skills and experiences from the portfolio. The tone should be professional but enthusiastic. "
            "Keep it concise and impactful, around 3-4 paragraphs.\n"
            f'\nJob Description:\n"{job_description}"\n\n'
            'Return STRICT JSON only (no markdown) with key "coverLetter" (string).\n'
        )
        return (await self._ask("cover-letter", prompt, CoverLetterOutput)).cover_letter

    async def draft_testimonial(self, name: str, role: str, traits: str) -> str:
        prompt = (
            "You are a professional writer who specializes in crafting compelling testimonials for developer "
            "portfolios.\n"
            "Based on the name, role, and key traits provided, write a professional and enthusiastic testimonial "
            "of about 2-3 sentences. It should sound authentic and highlight the person's positive qualities.\n"
            'Return STRICT JSON only (no markdown) with key "testimonialText" (string).\n'
            f"\nName of reviewer: {name}\nRole of reviewer: {role}\nKey Traits: {traits}\n"
        )
        return (await self._ask("testimonial", prompt, TestimonialOutput)).testimonial_text

    async def evaluate_portfolio(self, portfolio: PortfolioProjection) -> PortfolioEvaluation:
        prompt = (
            "You are an expert career coach and hiring manager for a top tech company. Evaluate a software "
            "developer's portfolio based on the data below.\n"
            "Provide an overall score out of 100 (85 or higher is excellent and job-ready), a single-paragraph "
            "summary of its strengths, and 3-5 concrete, actionable suggestions for improvement.\n\n"
            f"{_portfolio_block(portfolio, include_headline=True)}\n\n"
            "Return STRICT JSON only (no markdown) with keys:\n"
            "- score: number\n"
            "- strengths: string\n"
            "- suggestions: [string]\n"
        )
        return await self._ask("evaluation", prompt, PortfolioEvaluation)

    async def generate_project_image(self, title: str, description: str) -> str:
        """Returns the image as a PNG data URI."""
        if self.image is None:
            raise GenerationFailed("no image provider configured")
        prompt = (
            "Generate a visually appealing and professional image that abstractly represents a software project.\n"
            f"\nProject Title: {title}\nProject Description: {description}\n\n"
            "The image should be suitable for a developer's portfolio. Think abstract, clean, modern, and "
            "tech-oriented. Avoid text. Use a cool color palette."
        )
        try:
            generated = await self.image.generate_image(prompt)
        except Exception as e:
            logger.exception("project-image via %s failed", self.image.name)
            raise GenerationFailed("project-image failed") from e
        if generated is None:
            logger.warning("project-image via %s returned no image payload", self.image.name)
            raise GenerationFailed("image generation produced no output")
        # PIL decodes lazily; a truncated payload only fails here.
        try:
            return _png_data_uri(generated.image)
        except Exception as e:
            logger.warning("project-image via %s returned an undecodable image: %s", self.image.name, e)
            raise GenerationFailed("project-image failed") from e


def _png_data_uri(img: Any) -> str:
    buf = BytesIO()
    img.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")
