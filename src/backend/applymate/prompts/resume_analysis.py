"""Prompt template for resume analysis.

Versioned so we can track which prompt produced which saved analysis.
"""

PROMPT_VERSION = "v1.0"

TRUNCATION_MARKER = "... [truncated]"

ANALYSIS_PROMPT_TEMPLATE = """\
You are an experienced hiring manager and technical recruiter with 15+ years of \
experience evaluating candidates. Your task is to analyze a resume against a job \
description with strict, objective criteria.

RESUME TEXT:
{resume_text}

JOB DESCRIPTION:
{job_description}

EVALUATION CRITERIA:
1. Match Score (0-100): Score strictly based on:
   - Required skills match (40% weight)
   - Relevant experience alignment (30% weight)
   - Education/certifications match (15% weight)
   - Keywords and terminology alignment (15% weight)
   Be harsh but fair. A perfect match is 90-100, good match is 70-89, moderate is 50-69, poor is below 50.

2. Missing Skills: List ONLY skills explicitly required in the job description but \
absent from the resume. Be specific (e.g., "React.js" not "JavaScript frameworks").

3. Score Explanation: Provide 2-3 concise bullet points explaining WHY the score is \
what it is. Focus on specific gaps or strengths.

4. Resume Improvements: Provide exactly 3 concrete, actionable suggestions to improve \
the resume for THIS specific job.

5. Cover Letter: Generate a professional, personalized cover letter (3-4 paragraphs) \
that highlights relevant experience and addresses key job requirements.

6. Interview Questions: Generate exactly 5 role-specific interview questions that a \
hiring manager would ask based on the job requirements and candidate's background.

RESPONSE FORMAT:
Return ONLY valid JSON. No markdown, no code blocks, no explanations, no additional text.

{{
  "matchScore": <integer 0-100>,
  "missingSkills": [<array of strings>],
  "scoreExplanation": [<array of 2-3 strings explaining the score>],
  "resumeImprovements": [<array of exactly 3 strings>],
  "coverLetter": "<string>",
  "interviewQuestions": [<array of exactly 5 strings>]
}}"""


def truncate_input(text: str, max_chars: int) -> str:
    """Cut text to max_chars and append a visible marker."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


def build_analysis_prompt(resume_text: str, job_description: str) -> str:
    return ANALYSIS_PROMPT_TEMPLATE.format(
        resume_text=resume_text,
        job_description=job_description,
    )
