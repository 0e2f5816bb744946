from __future__ import annotations

from pydantic import BaseModel, Field


class WorkExperience(BaseModel):
    company: str = ""
    title: str = ""
    location: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    current: bool | None = None
    description: str | None = None
    highlights: list[str] = Field(default_factory=list)


class Education(BaseModel):
    institution: str = ""
    degree: str | None = None
    field: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    gpa: str | None = None
    highlights: list[str] = Field(default_factory=list)


class Skill(BaseModel):
    name: str
    level: str | None = None
    years_of_experience: float | None = None
    category: str | None = None


class Certification(BaseModel):
    name: str
    issuer: str | None = None
    date: str | None = None
    expiration_date: str | None = None
    credential_id: str | None = None


class ParsedResume(BaseModel):
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    summary: str | None = None
    experience: list[WorkExperience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    skills: list[Skill] = Field(default_factory=list)
    certifications: list[Certification] = Field(default_factory=list)
    raw_text: str = ""


class LinkedInPost(BaseModel):
    text: str = ""
    post_url: str = ""
    posted_at: str = ""
    time_ago: str = ""
    num_reactions: int = 0
    num_comments: int = 0
    num_reposts: int = 0
    images: list[str] = Field(default_factory=list)
    video_url: str | None = None


class LinkedInProfile(BaseModel):
    url: str
    full_name: str | None = None
    headline: str | None = None
    summary: str | None = None
    location: str | None = None
    industry: str | None = None
    connections: int | None = None
    experience: list[WorkExperience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    certifications: list[Certification] = Field(default_factory=list)
    profile_picture: str | None = None
    recent_posts: list[LinkedInPost] = Field(default_factory=list)
