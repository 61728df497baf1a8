"""
Prompt components for resume extraction and email generation.

The prompts ask the model for JSON only; ``schema.py`` defines which keys
are read back and what each defaults to.
"""

SYSTEM_PROMPT = "You return ONLY valid JSON objects."

RESUME_EXTRACTION_PROMPT = """
You are an expert at extracting structured information from resumes. Please analyze the following resume text and extract the key information in a structured format.

RESUME TEXT:
{resume_text}

Please extract and return the following information in JSON format:

{{
  "name": "Full name of the person",
  "email": "Email address",
  "phone": "Phone number (if available)",
  "experience": "Brief summary of work experience (2-3 sentences)",
  "education": "Educational background (degree, institution, etc.)",
  "skills": ["skill1", "skill2", "skill3", "skill4", "skill5"]
}}

Guidelines:
- Extract the most relevant skills (focus on technical and professional skills)
- For experience, provide a concise summary of their work background
- For education, include degree and institution
- If any field is not found, leave it out
- Look for email addresses and phone numbers in any format

Return ONLY the JSON object, no additional text.
"""

COLD_EMAIL_PROMPT = """
You are an expert at writing compelling cold emails for job applications.
Please write a personalized cold email for the following:

CONTACT INFORMATION:
- Name: {contact_name}
- Title: {contact_title}
- Company: {contact_company}
- Email: {contact_email}

CANDIDATE INFORMATION:
- Name: {candidate_name}
- Experience: {candidate_experience}
- Skills: {candidate_skills}
- Education: {candidate_education}

Please create:
1. A compelling subject line (max 60 characters)
2. A personalized email body (max 300 words) that:
   - Shows you've researched the company
   - Highlights relevant skills and experience
   - Explains why you're interested in the company
   - Includes a clear call to action
   - Is professional but not overly formal
   - Mentions that you're attaching your resume

Return ONLY valid JSON:
{{
  "subject": "Your subject line here",
  "body": "Your email body here"
}}
"""

# Curated vocabulary for keyword skill matching (order is output order).
SKILL_VOCABULARY = [
    # Programming Languages
    "JavaScript", "TypeScript", "Python", "Java", "C++", "C#", "PHP", "Ruby",
    "Go", "Rust", "Swift", "Kotlin", "Scala",
    # Web Technologies
    "React", "Angular", "Vue.js", "Node.js", "Express.js", "Django", "Flask",
    "Spring", "Laravel", "ASP.NET",
    # Databases
    "SQL", "MySQL", "PostgreSQL", "MongoDB", "Redis", "Oracle", "SQLite",
    "Cassandra", "DynamoDB",
    # Cloud & DevOps
    "AWS", "Azure", "Google Cloud", "Docker", "Kubernetes", "Jenkins",
    "GitLab", "GitHub", "CI/CD", "DevOps",
    # Tools
    "Git", "Jira", "Confluence", "Slack", "Trello", "Asana", "Figma",
    "Adobe Creative Suite", "Photoshop", "Illustrator",
    # Data & AI
    "Machine Learning", "Data Analysis", "Data Science", "TensorFlow",
    "PyTorch", "Pandas", "NumPy", "Scikit-learn",
    # Methodologies
    "Agile", "Scrum", "Kanban", "Waterfall", "Lean", "Six Sigma",
    # Soft Skills
    "Project Management", "Team Leadership", "Communication",
    "Problem Solving", "Critical Thinking", "Time Management",
    # Design
    "UI/UX", "User Experience", "User Interface", "Wireframing",
    "Prototyping", "Responsive Design",
    # Testing
    "Unit Testing", "Integration Testing", "Test-Driven Development",
    "Jest", "Mocha", "Cypress", "Selenium",
]


def build_resume_prompt(resume_text: str) -> str:
    return RESUME_EXTRACTION_PROMPT.format(resume_text=resume_text)


def build_email_prompt(contact, resume) -> str:
    return COLD_EMAIL_PROMPT.format(
        contact_name=contact.name,
        contact_title=contact.title,
        contact_company=contact.company,
        contact_email=contact.email,
        candidate_name=resume.name,
        candidate_experience=resume.experience,
        candidate_skills=", ".join(resume.skills),
        candidate_education=resume.education,
    )
