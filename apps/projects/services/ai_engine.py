import json
import logging

import google.generativeai as genai
from django.conf import settings
from django.utils import timezone

from apps.projects.exceptions import UpstreamServiceError, ValidationError

logger = logging.getLogger(__name__)

SUGGESTION_TYPES = ('task', 'priority', 'deadline', 'workload', 'risk')
SUGGESTION_PRIORITIES = ('low', 'medium', 'high')


class AIEngine:
    """Service to interact with Google Gemini API."""

    def __init__(self, api_key=None):
        api_key = api_key or settings.GEMINI_API_KEY
        if not api_key:
            raise ValidationError('Gemini API key is not configured')
        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(settings.GEMINI_MODEL)

    def analyze_project(self, project, tasks) -> dict:
        """
        Reviews a project's tasks and returns
        ``{"summary": str, "suggestions": [{type, title, description, priority}]}``.
        Unknown suggestion types and priorities are normalised.
        """
        result = self._generate_json(self._build_analysis_prompt(project, tasks))

        suggestions = []
        for item in result.get('suggestions') or []:
            if not isinstance(item, dict) or not item.get('title'):
                continue
            suggestion_type = item.get('type') if item.get('type') in SUGGESTION_TYPES else 'task'
            priority = item.get('priority') if item.get('priority') in SUGGESTION_PRIORITIES else 'medium'
            suggestions.append({
                'type': suggestion_type,
                'title': str(item['title'])[:255],
                'description': str(item.get('description') or ''),
                'priority': priority,
            })

        return {'summary': str(result.get('summary') or ''), 'suggestions': suggestions}

    def suggest_task_description(self, project, title: str) -> str:
        prompt = f"""
        You are helping plan work in the project "{project.name}".
        Project description: {project.description or 'n/a'}

        Draft a concise, actionable description for a new task titled "{title}".
        Include a short list of acceptance criteria.

        Return the result strictly as a valid JSON object: {{"description": "..."}}
        """
        result = self._generate_json(prompt)
        return str(result.get('description') or '')

    def _generate_json(self, prompt: str) -> dict:
        generation_config = genai.types.GenerationConfig(
            candidate_count=1,
            response_mime_type="application/json"
        )
        try:
            response = self.model.generate_content(prompt, generation_config=generation_config)
            text = response.text
        except Exception as e:
            raise UpstreamServiceError('AI service request failed', detail=str(e))

        try:
            result = json.loads(text)
        except json.JSONDecodeError:
            raise UpstreamServiceError('AI service returned an unreadable response', detail=text[:200])
        if not isinstance(result, dict):
            raise UpstreamServiceError('AI service returned an unreadable response', detail=text[:200])
        return result

    def _build_analysis_prompt(self, project, tasks) -> str:
        now = timezone.now()
        lines = []
        for task in tasks:
            due = task.due_date.date().isoformat() if task.due_date else 'none'
            overdue = ' (OVERDUE)' if task.due_date and task.due_date < now and task.status != 'done' else ''
            assignee = 'assigned' if task.assignee_id else 'unassigned'
            lines.append(
                f"- [{task.status}] {task.title} | priority {task.priority} | progress {task.progress}% "
                f"| due {due}{overdue} | {assignee}"
            )
        task_list = "\n".join(lines) or "(no tasks yet)"

        return f"""
        You are an experienced project manager reviewing the project "{project.name}".
        Project description: {project.description or 'n/a'}
        Today is {now.date().isoformat()}.

        Tasks:
        {task_list}

        Identify the most useful improvements: missing tasks, priorities to change,
        deadline risks, and workload imbalances. Give at most 5 suggestions.

        Return the result strictly as a valid JSON object with the following schema:
        {{
            "summary": "Two or three sentences on the project's health.",
            "suggestions": [
                {{
                    "type": "one of: {', '.join(SUGGESTION_TYPES)}",
                    "title": "Short imperative title",
                    "description": "What to do and why",
                    "priority": "one of: {', '.join(SUGGESTION_PRIORITIES)}"
                }}
            ]
        }}
        """
