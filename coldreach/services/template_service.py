"""
Template-mode emails and placeholder substitution.

``generate_template_email`` is the non-AI fallback used whenever the
provider is throttled or failing. ``apply_placeholders`` fills the
bracketed placeholders used by the bulk editor.
"""

import random
from typing import Optional

from ..models import Contact, EmailTemplate, ResumeData

TEMPLATES = [
    {
        "subject": "Job Application - {your_name} for {company}",
        "body": """Dear {contact_name},

I hope this email finds you well. I am writing to express my interest in potential opportunities at {company}.

With my background in {experience} and skills in {skills_3}, I believe I could be a valuable addition to your team.

I have attached my resume for your review and would welcome the opportunity to discuss how my experience aligns with your company's needs.

Thank you for your time and consideration.

Best regards,
{your_name}
{your_email}
{your_phone}""",
    },
    {
        "subject": "Interested in joining {company} - {your_name}",
        "body": """Dear {contact_name},

I hope you're having a great day. I'm writing because I'm very interested in the work {company} is doing and would love to explore potential opportunities to contribute to your team.

My experience in {experience} has equipped me with the skills needed to make an immediate impact. I'm particularly excited about {company}'s mission and believe my background in {skills_2} would be valuable to your organization.

I've attached my resume and would appreciate the opportunity to discuss how I can contribute to {company}'s continued success.

Thank you for considering my application.

Best regards,
{your_name}
{your_email}""",
    },
    {
        "subject": "Career Opportunity at {company}",
        "body": """Dear {contact_name},

I hope this message reaches you well. I am writing to express my strong interest in career opportunities at {company}.

With my background in {experience} and expertise in {skills_3}, I am confident I can bring valuable contributions to your team.

I have attached my resume for your review and would welcome the opportunity to discuss how my skills and experience align with {company}'s needs.

Thank you for your time and consideration.

Best regards,
{your_name}
{your_email}
{your_phone}""",
    },
]

PLACEHOLDERS = (
    "[Contact Name]",
    "[Company Name]",
    "[Your Name]",
    "[Your Email]",
    "[Your Phone]",
    "[Your Experience]",
    "[Your Skills]",
)


def _text(value) -> str:
    return str(value) if value is not None else ""


def _template_variables(contact: Optional[Contact], resume: Optional[ResumeData]) -> dict[str, str]:
    skills = [_text(s) for s in (getattr(resume, "skills", None) or [])]
    return {
        "contact_name": _text(getattr(contact, "name", "")),
        "company": _text(getattr(contact, "company", "")),
        "your_name": _text(getattr(resume, "name", "")),
        "your_email": _text(getattr(resume, "email", "")),
        "your_phone": _text(getattr(resume, "phone", "")),
        "experience": _text(getattr(resume, "experience", "")),
        "skills_3": ", ".join(skills[:3]),
        "skills_2": " and ".join(skills[:2]),
    }


def generate_template_email(
    contact: Optional[Contact],
    resume: Optional[ResumeData],
    rng: Optional[random.Random] = None,
) -> tuple[str, str]:
    """
    Fill a randomly chosen template with contact and resume details.

    Never fails: missing values are rendered as empty strings.

    Returns:
        Tuple of (subject, body).
    """
    template = (rng or random).choice(TEMPLATES)
    variables = _template_variables(contact, resume)
    subject = template["subject"].format(**variables)
    body = template["body"].format(**variables).rstrip()
    return subject, body


def apply_placeholders(
    text: str,
    template: EmailTemplate,
    resume: Optional[ResumeData],
) -> str:
    """
    Replace bracketed placeholders for one recipient.

    Contact placeholders always resolve; resume placeholders are left in
    place when the resume has no value for them.
    """
    skills = ", ".join((resume.skills if resume else [])[:3])
    values = {
        "[Contact Name]": template.contact.name,
        "[Company Name]": template.company,
        "[Your Name]": resume.name if resume else "",
        "[Your Email]": resume.email if resume else "",
        "[Your Phone]": resume.phone if resume else "",
        "[Your Experience]": resume.experience if resume else "",
        "[Your Skills]": skills,
    }

    for placeholder in PLACEHOLDERS:
        value = values[placeholder]
        if value:
            text = text.replace(placeholder, value)
    return text
