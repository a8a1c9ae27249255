from django.apps import AppConfig


class ReviewsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.reviews"
    label = "reviews"

    def ready(self) -> None:
        from modules.reviews.events import ReviewCreated
        from modules.reviews.handlers import review_created_handler
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(ReviewCreated, review_created_handler)
