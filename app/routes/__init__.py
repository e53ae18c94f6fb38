"""
Blog API — Routes Package
===========================

Route Inventory:
    - submissions.py: /api/blog/submission[...]            (intake + moderation)
    - blogs.py:       /api/blog, /categories, /new, /upload-image, /{id}
    - comments.py:    /api/blog/{id}/comment[s], /{blogId}/comment/{commentId}
    - health.py:      /, /health

Routes stay thin: read the request, call a service, choose the status code.
Errors are raised as BlogAPIError subclasses and rendered by the handlers in
main.py.
"""
