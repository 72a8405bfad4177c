"""
Workflow Engine

Durable, per-subscriber notification workflows.

Components:
- StepExecutor: Named, checkpointed units of work with bounded retries
- isolate: Per-subscriber failure isolation into Outcome values
- resolve_news: Personalized -> generic news fallback chain
- run_stage: Bounded fan-out / ordered fan-in across subscribers
- DailyNewsSummaryWorkflow: Enumerate -> fetch -> summarize -> send
- WelcomeEmailWorkflow: Sign-up intro generation and welcome email
"""
