"""
Pydantic schemas for jobs, candidates and interviews.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field


class JobCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    department: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    status: str = Field(default="open", pattern="^(open|closed|draft)$")


class JobResponse(BaseModel):
    id: int
    title: str
    department: Optional[str] = None
    location: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CandidateCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    current_position: Optional[str] = Field(None, max_length=255)


class CandidateResponse(BaseModel):
    id: int
    full_name: str
    email: Optional[str] = None
    current_position: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InterviewCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    scheduled_at: datetime
    candidate_id: Optional[int] = None
    job_id: Optional[int] = None
    duration_minutes: int = Field(default=60, ge=15, le=480)
    notes: Optional[str] = None


class InterviewResponse(BaseModel):
    id: int
    title: str
    scheduled_at: datetime
    candidate_id: Optional[int] = None
    job_id: Optional[int] = None
    duration_minutes: int
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
