from __future__ import annotations

import logging
from pathlib import Path

from fastapi import Depends, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from portfolio_builder.config import settings
from portfolio_builder.errors import (
    GenerationFailed,
    GenerationUnavailable,
    PersistenceReadError,
    PortfolioNotFound,
    PortfolioValidationError,
    StoreError,
)
from portfolio_builder.forms import (
    ContactForm,
    ExperienceForm,
    ProfileForm,
    ProjectForm,
    SkillForm,
    TestimonialForm,
    ThemeForm,
    parse_form,
)
from portfolio_builder.generation import ContentGateway, PortfolioProjection, filter_new_skills
from portfolio_builder.models import Contact, ThemeSettings, default_avatar_url, document_to_dict
from portfolio_builder.preview.render import render_portfolio
from portfolio_builder.providers.gemini_provider import GeminiProvider
from portfolio_builder.providers.openai_provider import OpenAITextProvider
from portfolio_builder.sessions import Session, SessionRegistry
from portfolio_builder.storage import PublishedStorage

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="portfolio_builder")

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

static_dir = BASE_DIR / "static"
static_dir.mkdir(parents=True, exist_ok=True)
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

sessions = SessionRegistry()
published = PublishedStorage()


@app.middleware("http")
async def session_cookie(request: Request, call_next):
    session_id = request.cookies.get(settings.session_cookie)
    is_new = not session_id
    if is_new:
        session_id = sessions.new_session_id()
    request.state.session_id = session_id
    response = await call_next(request)
    if is_new:
        response.set_cookie(settings.session_cookie, session_id, httponly=True, samesite="lax")
    return response


def get_session(request: Request) -> Session:
    return sessions.get(request.state.session_id)


def _get_gemini() -> GeminiProvider:
    if not settings.gemini_api_key:
        raise GenerationUnavailable("GEMINI_API_KEY is not set")
    return GeminiProvider(api_key=settings.gemini_api_key)


def _get_openai_text() -> OpenAITextProvider:
    if not settings.openai_api_key:
        raise GenerationUnavailable("OPENAI_API_KEY is not set")
    return OpenAITextProvider(api_key=settings.openai_api_key)


def get_gateway() -> ContentGateway:
    if settings.text_provider == "openai":
        image = GeminiProvider(api_key=settings.gemini_api_key) if settings.gemini_api_key else None
        return ContentGateway(text=_get_openai_text(), image=image)
    gemini = _get_gemini()
    return ContentGateway(text=gemini, image=gemini)


def _back() -> RedirectResponse:
    return RedirectResponse(url="/", status_code=303)


def _invalid(sess: Session, err: PortfolioValidationError) -> RedirectResponse:
    sess.notify("error", f"Invalid {err.field}", err.message)
    return _back()


def _generation_failed(sess: Session, what: str) -> RedirectResponse:
    sess.notify("error", "Uh oh! Something went wrong.", f"Failed to generate {what}. Please try again.")
    return _back()


@app.exception_handler(GenerationUnavailable)
async def generation_unavailable(request: Request, exc: GenerationUnavailable):
    logger.warning("generation requested without a configured provider: %s", exc)
    sessions.get(request.state.session_id).notify("error", "AI features are not configured", str(exc))
    return _back()


@app.get("/", response_class=HTMLResponse)
def editor(request: Request, sess: Session = Depends(get_session)):
    return templates.TemplateResponse(
        request=request,
        name="editor.html",
        context={
            "doc": sess.store.get(),
            "preview_html": sess.preview.html,
            "preview_version": sess.preview.version,
            "notices": sess.pop_notices(),
            "suggestions": sess.skill_suggestions,
            "cover_letter": sess.cover_letter,
            "evaluation": sess.evaluation,
        },
    )


@app.get("/preview", response_class=HTMLResponse)
def preview(sess: Session = Depends(get_session)):
    return HTMLResponse(sess.preview.html, headers={"X-Preview-Version": str(sess.preview.version)})


@app.get("/api/portfolio")
def portfolio_json(sess: Session = Depends(get_session)):
    return JSONResponse(document_to_dict(sess.store.get()))


# --- Manual edits ---


@app.post("/profile")
def update_profile(
    name: str = Form(""),
    headline: str = Form(""),
    about_me: str = Form(""),
    sess: Session = Depends(get_session),
):
    form = parse_form(ProfileForm, name=name, headline=headline, about_me=about_me)
    doc = sess.store.get()
    for field in ("name", "headline", "about_me"):
        value = getattr(form, field)
        if getattr(doc, field) != value:
            sess.store.set_field(field, value)
    return _back()


@app.post("/projects")
def add_project(
    title: str = Form(""),
    tech_stack: str = Form(""),
    description: str = Form(""),
    link: str = Form(""),
    sess: Session = Depends(get_session),
):
    try:
        form = parse_form(ProjectForm, title=title, tech_stack=tech_stack, description=description, link=link)
    except PortfolioValidationError as e:
        return _invalid(sess, e)
    sess.store.add_item("projects", **form.model_dump())
    sess.notify("success", "Project added!")
    return _back()


@app.post("/projects/{project_id}/update")
def update_project(
    project_id: str,
    title: str = Form(""),
    tech_stack: str = Form(""),
    description: str = Form(""),
    link: str = Form(""),
    sess: Session = Depends(get_session),
):
    try:
        form = parse_form(ProjectForm, title=title, tech_stack=tech_stack, description=description, link=link)
    except PortfolioValidationError as e:
        return _invalid(sess, e)
    if sess.store.update_item("projects", project_id, **form.model_dump()):
        sess.notify("success", "Project updated!")
    return _back()


@app.post("/projects/{project_id}/delete")
def delete_project(project_id: str, sess: Session = Depends(get_session)):
    sess.store.remove_item("projects", project_id)
    return _back()


@app.post("/skills")
def add_skill(name: str = Form(""), sess: Session = Depends(get_session)):
    try:
        form = parse_form(SkillForm, name=name)
        sess.store.add_skill(form.name)
    except PortfolioValidationError as e:
        sess.notify("error", e.message)
        return _back()
    added = form.name.lower()
    sess.skill_suggestions = [s for s in sess.skill_suggestions if s.lower() != added]
    return _back()


@app.post("/skills/{skill_id}/delete")
def delete_skill(skill_id: str, sess: Session = Depends(get_session)):
    sess.store.remove_item("skills", skill_id)
    return _back()


@app.post("/experiences")
def add_experience(
    role: str = Form(""),
    company: str = Form(""),
    period: str = Form(""),
    description: str = Form(""),
    sess: Session = Depends(get_session),
):
    try:
        form = parse_form(ExperienceForm, role=role, company=company, period=period, description=description)
    except PortfolioValidationError as e:
        return _invalid(sess, e)
    sess.store.add_item("experiences", **form.model_dump())
    sess.notify("success", "Experience added!")
    return _back()


@app.post("/experiences/{experience_id}/update")
def update_experience(
    experience_id: str,
    role: str = Form(""),
    company: str = Form(""),
    period: str = Form(""),
    description: str = Form(""),
    sess: Session = Depends(get_session),
):
    try:
        form = parse_form(ExperienceForm, role=role, company=company, period=period, description=description)
    except PortfolioValidationError as e:
        return _invalid(sess, e)
    if sess.store.update_item("experiences", experience_id, **form.model_dump()):
        sess.notify("success", "Experience updated!")
    return _back()


@app.post("/experiences/{experience_id}/delete")
def delete_experience(experience_id: str, sess: Session = Depends(get_session)):
    sess.store.remove_item("experiences", experience_id)
    return _back()


@app.post("/testimonials")
def add_testimonial(
    name: str = Form(""),
    role: str = Form(""),
    text: str = Form(""),
    avatar_url: str = Form(""),
    sess: Session = Depends(get_session),
):
    try:
        form = parse_form(TestimonialForm, name=name, role=role, text=text, avatar_url=avatar_url)
    except PortfolioValidationError as e:
        return _invalid(sess, e)
    sess.store.add_testimonial(form.name, form.role, form.text, form.avatar_url)
    sess.notify("success", "Testimonial added!")
    return _back()


@app.post("/testimonials/{testimonial_id}/update")
def update_testimonial(
    testimonial_id: str,
    name: str = Form(""),
    role: str = Form(""),
    text: str = Form(""),
    avatar_url: str = Form(""),
    sess: Session = Depends(get_session),
):
    try:
        form = parse_form(TestimonialForm, name=name, role=role, text=text, avatar_url=avatar_url)
    except PortfolioValidationError as e:
        return _invalid(sess, e)
    changes = form.model_dump()
    changes["avatar_url"] = form.avatar_url or default_avatar_url(form.name)
    if sess.store.update_item("testimonials", testimonial_id, **changes):
        sess.notify("success", "Testimonial updated!")
    return _back()


@app.post("/testimonials/{testimonial_id}/delete")
def delete_testimonial(testimonial_id: str, sess: Session = Depends(get_session)):
    sess.store.remove_item("testimonials", testimonial_id)
    return _back()


@app.post("/contact")
def update_contact(
    email: str = Form(""),
    github: str = Form(""),
    linkedin: str = Form(""),
    sess: Session = Depends(get_session),
):
    try:
        form = parse_form(ContactForm, email=email, github=github, linkedin=linkedin)
    except PortfolioValidationError as e:
        return _invalid(sess, e)
    sess.store.set_field("contact", Contact(**form.model_dump()))
    return _back()


@app.post("/theme")
def update_theme(
    color_scheme: str = Form("dark"),
    layout: str = Form("standard"),
    sess: Session = Depends(get_session),
):
    try:
        form = parse_form(ThemeForm, color_scheme=color_scheme, layout=layout)
    except PortfolioValidationError as e:
        return _invalid(sess, e)
    sess.store.set_field("theme", ThemeSettings(color_scheme=form.color_scheme, layout=form.layout))
    return _back()


# --- Generation ---
# Results are written back through the same store helpers as manual edits, and only
# once the gateway call has succeeded. Updates to items deleted meanwhile are no-ops.


@app.post("/generate/about-me")
async def generate_about_me(
    resume_text: str = Form(""),
    sess: Session = Depends(get_session),
    gateway: ContentGateway = Depends(get_gateway),
):
    if len(resume_text.strip()) < 50:
        sess.notify("error", "Invalid resume_text", "Please provide at least 50 characters of resume text.")
        return _back()
    try:
        about_me = await gateway.draft_about_me(resume_text)
    except GenerationFailed:
        return _generation_failed(sess, "an About Me section")
    sess.store.set_field("about_me", about_me)
    sess.notify("success", "Success!", 'Your new "About Me" section has been generated.')
    return _back()


@app.post("/generate/skills")
async def suggest_skills(
    sess: Session = Depends(get_session),
    gateway: ContentGateway = Depends(get_gateway),
):
    current = [s.name for s in sess.store.get().skills]
    if not current:
        sess.notify("error", "Add some skills first!", "Please add at least one skill to get suggestions.")
        return _back()
    try:
        tags = await gateway.suggest_skill_tags(", ".join(current))
    except GenerationFailed:
        return _generation_failed(sess, "skill suggestions")
    # Skills may have changed while the call was in flight.
    sess.skill_suggestions = filter_new_skills(tags, [s.name for s in sess.store.get().skills])
    sess.notify("success", "Suggestions Ready!", "Click on a suggestion to add it to your skills.")
    return _back()


@app.post("/projects/{project_id}/generate/description")
async def generate_project_description(
    project_id: str,
    sess: Session = Depends(get_session),
    gateway: ContentGateway = Depends(get_gateway),
):
    project = next((p for p in sess.store.get().projects if p.id == project_id), None)
    if project is None:
        return _back()
    try:
        description = await gateway.describe_project(project.title, project.tech_stack)
    except GenerationFailed:
        return _generation_failed(sess, "a description")
    if sess.store.update_item("projects", project_id, description=description):
        sess.notify("success", "Description generated successfully!")
    return _back()


@app.post("/projects/{project_id}/generate/image")
async def generate_project_image(
    project_id: str,
    sess: Session = Depends(get_session),
    gateway: ContentGateway = Depends(get_gateway),
):
    project = next((p for p in sess.store.get().projects if p.id == project_id), None)
    if project is None:
        return _back()
    try:
        image_url = await gateway.generate_project_image(project.title, project.description)
    except GenerationFailed:
        return _generation_failed(sess, "an image")
    if sess.store.update_item("projects", project_id, image_url=image_url):
        sess.notify("success", "Image generated and saved!")
    return _back()


@app.post("/experiences/{experience_id}/generate/description")
async def generate_experience_description(
    experience_id: str,
    tasks: str = Form(""),
    sess: Session = Depends(get_session),
    gateway: ContentGateway = Depends(get_gateway),
):
    exp = next((e for e in sess.store.get().experiences if e.id == experience_id), None)
    if exp is None:
        return _back()
    if len(tasks.strip()) < 10:
        sess.notify("error", "Invalid tasks", "Please provide a summary of your tasks.")
        return _back()
    try:
        description = await gateway.describe_experience(exp.role, exp.company, tasks)
    except GenerationFailed:
        return _generation_failed(sess, "a description")
    if sess.store.update_item("experiences", experience_id, description=description):
        sess.notify("success", "Description generated successfully!")
    return _back()


@app.post("/testimonials/{testimonial_id}/generate/text")
async def generate_testimonial_text(
    testimonial_id: str,
    traits: str = Form(""),
    sess: Session = Depends(get_session),
    gateway: ContentGateway = Depends(get_gateway),
):
    t = next((t for t in sess.store.get().testimonials if t.id == testimonial_id), None)
    if t is None:
        return _back()
    if not traits.strip():
        sess.notify("error", "Invalid traits", "Please provide a few key traits.")
        return _back()
    try:
        text = await gateway.draft_testimonial(t.name, t.role, traits)
    except GenerationFailed:
        return _generation_failed(sess, "a testimonial")
    if sess.store.update_item("testimonials", testimonial_id, text=text):
        sess.notify("success", "Testimonial generated successfully!")
    return _back()


@app.post("/generate/cover-letter")
async def generate_cover_letter(
    job_description: str = Form(""),
    sess: Session = Depends(get_session),
    gateway: ContentGateway = Depends(get_gateway),
):
    if len(job_description.strip()) < 50:
        sess.notify("error", "Invalid job_description", "Please provide at least 50 characters of job description.")
        return _back()
    projection = PortfolioProjection.from_document(sess.store.get())
    try:
        sess.cover_letter = await gateway.write_cover_letter(job_description, projection)
    except GenerationFailed:
        return _generation_failed(sess, "a cover letter")
    sess.notify("success", "Success!", "Your new cover letter has been generated.")
    return _back()


@app.post("/evaluate")
async def evaluate_portfolio(
    sess: Session = Depends(get_session),
    gateway: ContentGateway = Depends(get_gateway),
):
    projection = PortfolioProjection.from_document(sess.store.get())
    try:
        sess.evaluation = await gateway.evaluate_portfolio(projection)
    except GenerationFailed:
        return _generation_failed(sess, "an evaluation")
    sess.notify("success", "Evaluation Complete!", "Your portfolio has been analyzed by our AI career coach.")
    return _back()


# --- Publish / public view ---


@app.post("/publish")
def publish(request: Request, sess: Session = Depends(get_session)):
    published.publish(request.state.session_id, sess.store.get())
    return RedirectResponse(url="/portfolio", status_code=303)


@app.post("/restore")
def restore(request: Request, sess: Session = Depends(get_session)):
    try:
        doc = published.read(request.state.session_id)
    except PersistenceReadError as e:
        sess.notify("error", "Nothing to restore", str(e))
        return _back()
    try:
        sess.store.replace_all(doc)
    except StoreError as e:
        logger.warning("published portfolio for session %s cannot be restored: %s", request.state.session_id, e)
        sess.notify("error", "Nothing to restore", "Could not load portfolio data. It might be corrupted.")
        return _back()
    sess.notify("success", "Restored your published portfolio.")
    return _back()


@app.post("/reset")
def reset(request: Request):
    sessions.drop(request.state.session_id)
    return _back()


@app.get("/portfolio", response_class=HTMLResponse)
def public_portfolio(request: Request):
    try:
        doc = published.read(request.state.session_id)
    except PersistenceReadError as e:
        return templates.TemplateResponse(
            request=request,
            name="error.html",
            context={"message": str(e)},
            status_code=404 if isinstance(e, PortfolioNotFound) else 500,
        )
    return templates.TemplateResponse(
        request=request,
        name="portfolio.html",
        context={"portfolio_html": render_portfolio(doc, public=True), "doc": doc},
    )
