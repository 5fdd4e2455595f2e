# Import all models here so Base.metadata knows every table
from app.db.session import Base

from app.modules.user_management.models.user import User
from app.modules.posts.models.post import Post
from app.modules.posts.comments.models.comment import Comment
from app.modules.posts.amens.models.amen import Amen
from app.modules.posts.reposts.models.repost import Repost
from app.modules.follows.models.follow import Follow, FollowRequest
from app.modules.messaging.models.conversation import Conversation, Message
from app.modules.notifications.models.notification import Notification
