# Services package init
"""
Blog API — Services Layer
===========================

What:  Business logic between the routes (HTTP) and the database.
How:   Each service is a module-level singleton taking an AsyncSession per
       call; routes stay thin and never build queries themselves.

Service Inventory:
    - BlogService: post listing, detail, categories, create/update/delete
    - CommentService: comment ledger inside blogs.comments (versioned writes)
    - SubmissionService: guest submission intake and moderation
    - MediaService (MediaHost): Cloudinary uploads behind retry + circuit breaker
    - ImageProcessor: Pillow validation and JPEG compression before upload
    - json_columns / pagination: shared helpers for tolerant JSON columns
      and page/limit windows
"""
