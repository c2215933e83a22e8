import re
from typing import Dict, List, Optional

# role -> skill -> questions
ROLE_QUESTIONS: Dict[str, Dict[str, List[str]]] = {
    "Frontend Developer": {
        "React": [
            "Explain how React's virtual DOM works and why it improves performance.",
            "How would you optimize a React component that re-renders too frequently?",
            "Describe the difference between controlled and uncontrolled components in React.",
            "How do you handle state management in a large React application?",
            "Explain React hooks lifecycle and when you would use useEffect vs useLayoutEffect.",
        ],
        "CSS": [
            "How would you implement a responsive navigation menu without using a framework?",
            "Explain CSS specificity and how it affects style application.",
            "What are CSS Grid and Flexbox, and when would you use each?",
            "How do you optimize CSS for performance in a large application?",
            "Describe how you would implement a dark mode theme switcher.",
        ],
        "JavaScript": [
            "Explain closures in JavaScript and provide a practical use case.",
            "What is the event loop and how does it handle asynchronous operations?",
            "Describe the difference between var, let, and const.",
            "How would you implement debouncing for a search input?",
            "Explain prototypal inheritance in JavaScript.",
        ],
    },
    "Backend Engineer": {
        "API Design": [
            "How would you design a RESTful API for a blog platform with posts and comments?",
            "Explain the difference between PUT and PATCH HTTP methods.",
            "How do you handle API versioning in a production system?",
            "Describe how you would implement rate limiting for an API.",
            "What are the key considerations for designing a scalable API?",
        ],
        "Database": [
            "Explain the difference between SQL and NoSQL databases with use cases.",
            "How would you optimize a slow database query?",
            "Describe database indexing and when you would use it.",
            "How do you handle database migrations in a production environment?",
            "Explain ACID properties and their importance.",
        ],
        "Node.js": [
            "How does Node.js handle concurrency despite being single-threaded?",
            "Explain the difference between process.nextTick() and setImmediate().",
            "How would you handle memory leaks in a Node.js application?",
            "Describe how you would implement authentication in a Node.js API.",
            "What are streams in Node.js and when would you use them?",
        ],
    },
    "Full Stack Developer": {
        "System Design": [
            "Design a URL shortener service like bit.ly. What are the key components?",
            "How would you architect a real-time chat application?",
            "Explain how you would design a scalable file upload system.",
            "Describe the architecture for a social media feed with millions of users.",
            "How would you implement caching in a distributed system?",
        ],
        "Authentication": [
            "Explain JWT tokens and how they differ from session-based authentication.",
            "How would you implement OAuth 2.0 in your application?",
            "Describe how you would secure an API against common attacks.",
            "What is the difference between authentication and authorization?",
            "How do you handle password storage securely?",
        ],
        "DevOps": [
            "Explain the CI/CD pipeline you would set up for a web application.",
            "How would you containerize a full-stack application using Docker?",
            "Describe your approach to monitoring and logging in production.",
            "What strategies would you use for zero-downtime deployments?",
            "How do you handle database migrations in a CI/CD pipeline?",
        ],
    },
}

EXPECTED_POINTS: Dict[str, List[str]] = {
    "React": ["Component lifecycle", "State management", "Performance optimization"],
    "CSS": ["Layout techniques", "Responsive design", "Browser compatibility"],
    "JavaScript": ["Language fundamentals", "Async patterns", "Best practices"],
    "API Design": ["REST principles", "HTTP methods", "Error handling"],
    "Database": ["Query optimization", "Data modeling", "Transactions"],
    "Node.js": ["Event loop", "Async operations", "Error handling"],
    "System Design": ["Scalability", "Trade-offs", "Architecture patterns"],
    "Authentication": ["Security principles", "Token management", "Best practices"],
    "DevOps": ["Automation", "Monitoring", "Deployment strategies"],
}

DEFAULT_EXPECTED_POINTS = ["Technical understanding", "Practical experience", "Best practices"]

# Used for skills outside the catalog. {skill} and {role} are substituted.
GENERIC_TEMPLATES: List[str] = [
    "Walk me through how you have applied {skill} in a recent project as a {role}.",
    "What are the most common pitfalls with {skill}, and how do you avoid them?",
    "Describe a difficult problem you solved using {skill}. What trade-offs did you consider?",
    "How would you explain the core concepts of {skill} to a new team member?",
    "How do you evaluate and improve the quality of work involving {skill}?",
]

FOLLOW_UP_TEMPLATES: List[str] = [
    "Can you give a concrete example from a project where you dealt with this?",
    "What trade-offs did you weigh, and what would you do differently next time?",
]

DIFFICULTY_SUFFIX = {
    "Junior": "",
    "Mid": "",
    "Senior": " Discuss the trade-offs at scale.",
}

TONE_PREFIX = {
    "friendly": "Let's talk about {skill}. ",
    "neutral": "",
    "strict": "",
}


def _matches(key: str, skill: str) -> bool:
    k, s = key.lower(), skill.lower()
    if re.search(r"(?<!\w)" + re.escape(k) + r"s?(?!\w)", s):
        return True
    return len(s) >= 3 and re.search(r"(?<!\w)" + re.escape(s) + r"(?!\w)", k) is not None


def find_catalog_skill(role: str, skill: str) -> Optional[str]:
    """
    Find a catalog skill key matching the configured skill name.
    The role's own skills are searched first, then every role.
    """
    role_l = role.lower()
    ordered_roles = sorted(
        ROLE_QUESTIONS.keys(),
        key=lambda r: 0 if r.lower().split(" ")[0] in role_l else 1,
    )
    for r in ordered_roles:
        for key in ROLE_QUESTIONS[r]:
            if _matches(key, skill):
                return key
    return None


def questions_for(catalog_skill: str) -> List[str]:
    for skills in ROLE_QUESTIONS.values():
        if catalog_skill in skills:
            return skills[catalog_skill]
    return []
