# Services package init
"""
Pinboard API: Services Layer
==============================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
How:   Services take a session plus domain objects, apply the rules, flush,
       and return ORM objects; the request's session dependency commits.

Service Inventory:
    - UserService: registration, login, settings, deactivate/delete lifecycle
    - PinService: upload → validate → store → AI tags → persist; visibility
    - BoardService, LikeService, SavedService, FollowService
    - CommentService: threads, replies, cascading delete, comment likes
    - NotificationService: fan-out helpers used by likes, comments, follows
    - SearchService + ranking: scored search and autocomplete
    - TaggingService (abstract) / GeminiService: AI tag generation
    - MediaService: upload validation, storage, serving and cleanup
    - CounterMaintainer: denormalized like/comment counters
"""
