"""
Pinboard API: Route Handlers
==============================

Routers are thin: they pull data out of the request, call one service
method and shape the response. Business rules live in pinboard.services.

Route Inventory:
    auth.py           /api/auth/*, /api/account/*
    pins.py           /api/pins/*            (incl. likes and comments of a pin)
    comments.py       /api/comments/*
    likes.py          /api/likes/{pin_id}
    boards.py         /api/boards/*
    follow.py         /api/follow/*
    notifications.py  /api/notifications/*
    search.py         /api/search, /api/search/autocomplete
    users.py          /api/users/*
    profile.py        /api/profile/{user_id}
    upload.py         /api/upload
    saved.py          /api/saved/*
    feed.py           /api/feed
    media.py          /media/{path}
    health.py         /health
"""
