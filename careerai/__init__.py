"""CareerAI backend: job discovery, matching, interview prep and analytics."""
