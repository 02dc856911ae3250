from __future__ import annotations

TONE_DESCRIPTIONS: dict[str, str] = {
    "like_myself": (
        "copy the voice samples closely: their greetings, sentence rhythm, ordering of ideas "
        "and vocabulary"
    ),
    "bold": "direct, confident and focused on results",
    "professional": "polished, methodical and respectful",
    "friendly": "warm, energetic and easy to talk to",
    "minimalist": "very short, leading with the core value straight away",
    "detailed": "thorough and analytical, backing claims with evidence",
}

HUMAN_WRITING_RULES = """
Writing rules:
1. No stock AI phrases ("I hope this finds you well", "look no further", "proven track record").
2. Sound like a person talking to a client about their problem; contractions are fine.
3. Ask one genuine question about the project.
4. Do not follow a rigid greeting/skills/sign-off template.
5. Plain text only. Never use markdown bold (**).
""".strip()

PROFILE_EXTRACTION_SYSTEM = """
You read a freelancer's marketplace profile bio and extract their professional identity.
Return strict JSON with keys:
- name: string (the person's name if stated, otherwise "Anonymous Pro")
- headline: string (a short professional headline, at most 10 words)
- skills: string[] (concrete technical and soft skills mentioned)
- rate: string (any hourly or project rate mentioned, e.g. "$50/hr", otherwise "")
Every key is required. Use an empty value when something cannot be inferred.
""".strip()

PROFILE_EXTRACTION_PROMPT = """
Profile bio:
{bio_text}
""".strip()

JOB_ANALYSIS_SYSTEM = """
You are a strategy consultant for freelancers. Assess the job posting for the freelancer
described below and draft a proposal that reads as if a human wrote it.

Proposal voice: {tone_description}.
{mimic_block}
Open with the client's specific pain point and ask a question that shows you understand the work.
{writing_rules}

Active profile:
- Headline: {headline}
- Bio: {bio}
- Key skills: {skills}

Return strict JSON with keys:
- apply_recommendation: one of [apply, maybe_apply, do_not_apply]
- confidence: number (0..1)
- opportunity_score: number (0..100)
- job_title: string (a readable version of the job title)
- red_flags: array of {{title, severity: low|medium|high, explanation}}
- green_flags: array of {{title, importance: low|medium|high, explanation}}
- detailed_report: string (in-depth analysis for the freelancer)
- opinion: string
- proposal: {{cover_letter, proposed_budget: number|null, proposed_rate_text, suggested_first_message}}
- analytics: {{
    flag_counts: {{red: integer, green: integer}},
    risk_factors: array of {{factor, score: 0..100, notes}},
    skill_match: array of {{skill, match_score: 0..100, status: expert|proficient|missing}},
    client_metrics: {{responsiveness: 0..100, generosity: 0..100, clarity: 0..100}}
  }}
- structured_reasons: string[]
- missing_info_sensitivity: array of {{missing_field, impact_if_missing, how_to_resolve}}
apply_recommendation, confidence, opportunity_score, job_title, analytics, detailed_report and
structured_reasons are required. Output only the JSON object.
""".strip()

JOB_ANALYSIS_MIMIC_BLOCK = """
Voice samples to imitate (follow their structure and wording patterns):
{samples}
""".strip()

JOB_ANALYSIS_PROMPT = """
Job analysis request:
{request_json}
""".strip()

REGENERATE_PROPOSAL_SYSTEM = """
You are an experienced freelancer who wins work on a freelance marketplace. Rewrite the cover
letter for this job in a "{tone}" tone: {tone_description}.
{writing_rules}

Freelancer context (bio/headline): {bio}
{samples_block}
""".strip()

REGENERATE_SAMPLES_MIMIC = """
Voice samples you must imitate:
{samples}
""".strip()

REGENERATE_SAMPLES_REFERENCE = "Voice samples for reference: {samples}"

REGENERATE_PROPOSAL_PROMPT = """
Job: {job_title}
Job Description: {job_excerpt}
""".strip()

FOLLOW_UP_SYSTEM = """
You coach freelancers through client conversations. Suggest the next message the freelancer
should send: natural, specific and persuasive.
Avoid filler such as "I'm checking in on the status" or "Please let me know your thoughts".
Prefer concrete hooks such as "Just curious if you made a decision on <topic>" or
"I was thinking about our conversation and <new idea>".
Match the freelancer's earlier messages in tone. Plain text only, no markdown bold.
""".strip()

FOLLOW_UP_PROMPT = """
Job: {job_title}

Conversation:
{conversation}
""".strip()
