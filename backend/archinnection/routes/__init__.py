"""
Archinnection Backend: Routes Package
=======================================

Route Inventory:
    - auth.py:         /api/auth/{signup,login,logout,session}
    - profiles.py:     /api/profiles (own profile, uploads, sections, search)
    - posts.py:        /api/posts (feed, create, like, comment, delete)
    - connections.py:  /api/connections (status, request, accept, reject, remove)
    - jobs.py:         /api/jobs (board, mine, create, status)
    - pages.py:        /, /login, /signup, /dashboard, /profile, /network, /jobs, /recruiters
    - storage.py:      /storage/{bucket}/{key}
    - health.py:       /health

Routes stay thin: extract request data, call a service, shape the response.
"""
