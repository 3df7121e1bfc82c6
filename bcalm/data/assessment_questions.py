# bcalm/data/assessment_questions.py
"""Static question bank: 8 dimensions x 3 questions, seeded once at startup."""

DIMENSIONS = [
    "Product & Problem Thinking",
    "AI/ML Fundamentals",
    "Data & Metrics",
    "User Research & Empathy",
    "Product Strategy & Roadmapping",
    "Communication & Stakeholder Management",
    "Technical Collaboration",
    "AI Ethics & Responsible Design",
]

_QUESTION_TEXTS = {
    "Product & Problem Thinking": [
        "I can take a vague problem (e.g., 'students struggle to find internships') and turn it into a clear, specific problem statement with user context and measurable outcomes.",
        "When someone describes a product idea, I can identify the core user problem it's solving and whether the solution actually addresses that problem.",
        "I can explain how to prioritize features based on user value and business impact, not just what sounds cool or what I personally like.",
    ],
    "AI/ML Fundamentals": [
        "I understand the difference between supervised learning, unsupervised learning, and reinforcement learning, and can give real-world examples of each.",
        "I know when to use classification vs. regression, and can explain what a recommendation system or NLP (Natural Language Processing) does in simple terms.",
        "I can discuss common AI challenges like bias, overfitting, data quality issues, and explain why these matter for product decisions.",
    ],
    "Data & Metrics": [
        "I can define 2-3 key metrics to measure whether an AI product feature is successful (e.g., accuracy, user engagement, conversion rate).",
        "I understand the difference between correlation and causation, and can spot when data might be misleading or incomplete.",
        "I know how to evaluate an AI model's performance using metrics like precision, recall, F1 score, or explain why accuracy alone isn't enough.",
    ],
    "User Research & Empathy": [
        "I can conduct basic user interviews or surveys to understand pain points, and synthesize insights into actionable product ideas.",
        "I think about different user personas (e.g., tech-savvy vs. non-tech, beginners vs. experts) when designing features or flows.",
        "I can create simple user journey maps or wireframes to visualize how someone would interact with a product feature.",
    ],
    "Product Strategy & Roadmapping": [
        "I understand what a product roadmap is, and can break down a big vision into smaller, shippable milestones or MVPs.",
        "I can explain trade-offs between speed, quality, and scope when planning what to build first.",
        "I know how to use frameworks like RICE (Reach, Impact, Confidence, Effort) or MoSCoW to prioritize feature development.",
    ],
    "Communication & Stakeholder Management": [
        "I can explain technical AI concepts (like model accuracy or training data) to non-technical people in simple, clear language.",
        "I'm comfortable presenting ideas or findings in front of a group, and can handle questions or pushback constructively.",
        "I know how to align different stakeholders (engineers, designers, business teams) around a shared product goal.",
    ],
    "Technical Collaboration": [
        "I can read basic Python code snippets or understand simple API documentation to grasp how an AI feature works under the hood.",
        "I know what an API is, how data flows between systems, and can discuss integration challenges with engineers.",
        "I understand enough about model training, deployment, and monitoring to ask smart questions about feasibility and timelines.",
    ],
    "AI Ethics & Responsible Design": [
        "I can identify potential biases in training data or model outputs, and explain why fairness and transparency matter in AI products.",
        "I think about privacy, security, and user consent when designing features that collect or use personal data.",
        "I can discuss real-world examples of AI gone wrong (e.g., biased hiring tools, misinformation) and how to avoid similar pitfalls.",
    ],
}

ASSESSMENT_QUESTIONS = [
    {"dimension": dimension, "question_text": text, "order_index": i * 3 + j + 1}
    for i, dimension in enumerate(DIMENSIONS)
    for j, text in enumerate(_QUESTION_TEXTS[dimension])
]
