# skills.py
# Fixed vocabularies the parser, analyzer and bias rules scan against.

import re

# Resume skill scan. Order matters: parsed skills keep this order and are capped at 20.
RESUME_SKILL_KEYWORDS = [
    # --- Languages ---
    "JavaScript", "TypeScript", "Python", "Java", "C++", "C#", "Ruby", "Go", "Rust", "Swift", "Kotlin", "PHP",
    # --- Frameworks ---
    "React", "Angular", "Vue", "Node.js", "Express", "Django", "Flask", "Spring", "Rails", "Next.js",
    # --- Data stores ---
    "SQL", "MySQL", "PostgreSQL", "MongoDB", "Redis", "Elasticsearch", "Firebase",
    # --- Cloud / DevOps ---
    "AWS", "Azure", "GCP", "Docker", "Kubernetes", "Jenkins", "Git", "CI/CD", "Linux",
    # --- AI / ML ---
    "Machine Learning", "Deep Learning", "TensorFlow", "PyTorch", "NLP", "Computer Vision", "AI",
    # --- Front-end ---
    "HTML", "CSS", "SASS", "Tailwind", "Bootstrap", "Figma",
    # --- APIs ---
    "REST", "GraphQL", "API", "Microservices", "WebSocket",
    # --- Delivery ---
    "Agile", "Scrum", "JIRA", "Confluence", "Trello",
    # --- Office / analytics ---
    "Excel", "PowerPoint", "Word", "Tableau", "Power BI", "Data Analysis",
    # --- Soft skills ---
    "Communication", "Leadership", "Teamwork", "Problem Solving", "Critical Thinking",
    "Project Management", "Time Management", "Analytical Skills", "Public Speaking",
]

# JD description phrase matching.
# The "key" is the official skill name, the "value" lists the ways it might be written.
MASTER_SKILL_LIST = {
    "Python": ["Python"],
    "Java": ["Java"],
    "JavaScript": ["JavaScript", "JS"],
    "TypeScript": ["TypeScript"],
    "SQL": ["SQL", "PostgreSQL", "MySQL", "MSSQL"],
    "AWS": ["AWS", "Amazon Web Services"],
    "Azure": ["Azure", "Microsoft Azure"],
    "GCP": ["GCP", "Google Cloud Platform"],
    "React": ["React", "React.js"],
    "Node.js": ["Node.js", "NodeJS", "Node"],
    "Django": ["Django"],
    "Flask": ["Flask"],
    "Docker": ["Docker"],
    "Kubernetes": ["Kubernetes", "K8s"],
    "Git": ["Git", "GitHub", "GitLab"],
    "REST": ["REST", "RESTful APIs", "REST API"],
    "GraphQL": ["GraphQL"],
    "Microservices": ["Microservices"],
    "CI/CD": ["CI/CD", "Continuous Integration", "Continuous Deployment"],
    "Machine Learning": ["Machine Learning", "ML"],
    "Deep Learning": ["Deep Learning"],
    "NLP": ["NLP", "Natural Language Processing"],
    "TensorFlow": ["TensorFlow"],
    "PyTorch": ["PyTorch"],
    "Data Analysis": ["Data Analysis", "Data Analytics"],
    "Tableau": ["Tableau"],
    "Power BI": ["Power BI", "PowerBI"],
    "Excel": ["Excel"],
    "Figma": ["Figma"],
    "HTML": ["HTML"],
    "CSS": ["CSS"],
    "Agile": ["Agile", "Agile Methodology"],
    "Scrum": ["Scrum"],
    "JIRA": ["JIRA"],
    "Project Management": ["Project Management"],
    "Stakeholder Management": ["Stakeholder Management", "Stakeholder Communication"],
    "Communication": ["Communication", "Verbal Communication", "Written Communication"],
    "Leadership": ["Leadership", "Team Leadership"],
    "Problem Solving": ["Problem Solving", "Analytical Skills"],
    "Teamwork": ["Teamwork", "Collaboration"],
}

# Domain buckets for JD classification; the bucket with the most hits wins.
DOMAIN_KEYWORDS = {
    "engineering": ["software", "backend", "frontend", "api", "services", "architecture", "code", "deploy", "infrastructure"],
    "data": ["data", "analytics", "model", "models", "machine", "statistics", "pipeline", "pipelines", "insights"],
    "design": ["design", "user", "ux", "ui", "prototype", "prototypes", "visual", "research"],
    "product": ["product", "roadmap", "customer", "customers", "market", "requirements", "launch"],
    "marketing": ["marketing", "campaign", "campaigns", "brand", "content", "seo", "growth"],
    "operations": ["operations", "process", "processes", "logistics", "vendor", "budget", "compliance"],
}

SENIOR_HINTS = ("senior", "lead", "principal", "staff", "architect", "head of", "mentor")
JUNIOR_HINTS = ("junior", "entry level", "entry-level", "intern", "graduate", "trainee")

RESUME_LANGUAGES = [
    "English", "Spanish", "French", "German", "Chinese", "Mandarin", "Hindi",
    "Arabic", "Portuguese", "Japanese", "Korean", "Russian", "Italian",
]

EXPERIENCE_TITLE_KEYWORDS = [
    "Engineer", "Developer", "Manager", "Analyst", "Designer",
    "Consultant", "Lead", "Director", "Specialist", "Intern",
]

# --- Bias rule vocabularies (demo heuristics, not real signals) ---

NAME_BIAS_PATTERNS = {
    "high": ["Priya", "Fatima", "Nguyen", "Mohammed", "Lakshmi", "Xiao", "Dmitri"],
    "medium": ["Maria", "Carlos", "Ahmed", "Wei", "Yuki", "Aisha"],
    "low": ["Chen", "Kim", "Singh", "Park", "Lee", "Garcia"],
}

GENDER_CODED_WORDS = ["assertive", "aggressive", "collaborative", "nurturing", "competitive", "supportive"]

ELITE_INSTITUTION_REGEX = re.compile(
    r"(stanford|mit|harvard|yale|princeton|berkeley|cambridge|oxford)", re.IGNORECASE
)

# Demo roster used by the job board's "add samples" action.
SAMPLE_CANDIDATES = [
    ("Sarah Chen", ["resume", "video", "audio"]),
    ("Marcus Johnson", ["resume", "video"]),
    ("Priya Sharma", ["resume", "audio"]),
    ("James Wilson", ["resume", "video", "audio"]),
    ("Fatima Al-Hassan", ["resume", "video", "audio"]),
    ("Wei Zhang", ["resume", "audio"]),
]
