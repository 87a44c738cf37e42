"""Shared fixtures: a realistic original resume and small builders."""

import copy

import pytest

from truthlock.resume_schema import ResumeData
from truthlock.themes import resolve

SAMPLE_RESUME = {
    "personalInfo": {
        "name": "Sarah Johnson",
        "email": "sarah.johnson@email.com",
        "phone": "(555) 123-4567",
        "location": "San Francisco, CA",
        "linkedIn": "linkedin.com/in/sarahjohnson",
    },
    "summary": (
        "Full-stack software engineer with 6 years of experience building scalable web "
        "applications and cloud services. Comfortable across the stack from React front ends "
        "to Python and Node.js back ends on AWS."
    ),
    "workExperience": [
        {
            "company": "TechCorp Inc.",
            "title": "Senior Software Engineer",
            "startDate": "2021-01",
            "endDate": "Present",
            "bullets": [
                "Led migration of a monolith to microservices, cutting deploy time by 60%",
                "Built a real-time analytics dashboard used by 200+ enterprise customers",
                "Mentored 4 junior engineers through code review and pairing",
                "Designed REST APIs serving 5M requests per day with 99.9% uptime",
                "Introduced contract testing that reduced integration bugs by 35%",
            ],
        },
        {
            "company": "StartupXYZ",
            "title": "Software Engineer",
            "startDate": "2019-06",
            "endDate": "2020-12",
            "bullets": [
                "Shipped the customer onboarding flow in React and TypeScript",
                "Optimized PostgreSQL queries, reducing p95 latency by 45%",
                "Automated CI/CD pipelines with GitHub Actions and Docker",
                "Collaborated with design on an accessible component library",
            ],
        },
        {
            "company": "WebDev Agency",
            "title": "Junior Developer",
            "startDate": "2018-01",
            "endDate": "2019-05",
            "bullets": [
                "Developed responsive marketing sites for 15 clients",
                "Maintained WordPress plugins and custom PHP integrations",
                "Wrote end-to-end tests with Cypress for checkout flows",
            ],
        },
    ],
    "education": [
        {
            "institution": "State University",
            "degree": "Bachelor of Science",
            "field": "Computer Science",
            "graduationDate": "2017-05",
        },
    ],
    "skills": [
        "JavaScript", "TypeScript", "React", "Node.js", "Python", "AWS",
        "Docker", "Kubernetes", "PostgreSQL", "REST APIs", "Machine Learning", "CI/CD",
    ],
    "certifications": [
        "AWS Certified Solutions Architect (2022)",
        "Scrum Master Certification (2021)",
    ],
}


@pytest.fixture
def original_dict():
    return copy.deepcopy(SAMPLE_RESUME)


@pytest.fixture
def original(original_dict):
    return ResumeData.model_validate(original_dict)


@pytest.fixture
def tailored_dict(original_dict):
    """A well-behaved rewrite: reworded summary and bullets, reordered skills."""
    data = copy.deepcopy(original_dict)
    data["summary"] = "Engineer with 6 years shipping cloud-native products on AWS."
    data["workExperience"][0]["bullets"][0] = (
        "Drove monolith-to-microservices migration on AWS, cutting deploy time by 60%"
    )
    data["workExperience"][2]["bullets"][2] = "[LESS_RELEVANT] " + data["workExperience"][2]["bullets"][2]
    data["skills"] = ["AWS", "Python", "Docker", "React"]
    return data


@pytest.fixture
def small_resume():
    """One job, three bullets, a summary and two skills."""
    return ResumeData.model_validate({
        "personalInfo": {"name": "Alex Rivera", "email": "alex@example.com", "phone": "555-0100"},
        "summary": "Backend engineer focused on reliable data services.",
        "workExperience": [
            {
                "company": "DataWorks",
                "title": "Backend Engineer",
                "startDate": "2020-03",
                "endDate": "Present",
                "bullets": [
                    "Built ingestion services processing 2TB of events daily",
                    "Cut infrastructure cost by 30% by right-sizing clusters",
                    "Owned on-call rotation and incident reviews for the data platform",
                ],
            },
        ],
        "skills": ["Python", "Kafka"],
    })


@pytest.fixture
def professional():
    return resolve("professional")


def make_resume(bullets_per_job=3, jobs=1, bullet_text="Delivered measurable results for the team", **extra):
    """Build a ResumeData with ``jobs`` entries of ``bullets_per_job`` bullets each."""
    data = {
        "personalInfo": {"name": "Test Person", "email": "test@example.com"},
        "workExperience": [
            {
                "company": f"Company {i}",
                "title": "Engineer",
                "startDate": f"20{10 + i}-01",
                "endDate": f"20{11 + i}-01",
                "bullets": [f"{bullet_text} {j}" for j in range(bullets_per_job)],
            }
            for i in range(jobs)
        ],
        "skills": ["Python"],
    }
    data.update(extra)
    return ResumeData.model_validate(data)
